"""Fetcher adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING

from feedimport.config.http_resilience import get_feed_resilience_config

from .file import FileFetcher
from .http import HttpFetcher

if TYPE_CHECKING:
    from feedimport.config.importer import FetcherSection
    from feedimport.domain.ports import Fetcher


def build_fetcher(section: FetcherSection) -> Fetcher:
    if section.type == "file":
        return FileFetcher(pattern=section.pattern, recursive=section.recursive)
    return HttpFetcher(
        resilience=get_feed_resilience_config(
            timeout_seconds=section.timeout_seconds,
            user_agent=section.user_agent,
            max_calls_per_second=section.max_calls_per_second,
            cache=section.cache,
        )
    )


__all__ = ["FileFetcher", "HttpFetcher", "build_fetcher"]
