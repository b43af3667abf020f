"""Fetch source payloads over HTTP."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from feedimport.adapters.http_resilience import ResilientClient
from feedimport.config.http_resilience import ResilienceConfig, get_feed_resilience_config
from feedimport.domain.errors import SourceErrorKind, SourceUnavailableError
from feedimport.domain.ports.fetching import Fetcher, FetcherResult, SourceDescriptor

if TYPE_CHECKING:
    from collections.abc import Callable

log = getLogger(__name__)

_NOT_FOUND_STATUSES = frozenset({404, 410})
_PERMISSION_STATUSES = frozenset({401, 403})


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def classify_status(status_code: int) -> SourceErrorKind:
    if status_code in _NOT_FOUND_STATUSES:
        return SourceErrorKind.NOT_FOUND
    if status_code in _PERMISSION_STATUSES:
        return SourceErrorKind.PERMISSION
    return SourceErrorKind.NETWORK


@dataclass(slots=True)
class HttpFetcher:
    resilience: ResilienceConfig = field(default_factory=get_feed_resilience_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def fetch(self, source: SourceDescriptor) -> FetcherResult:
        return asyncio.run(self._fetch_async(source))

    async def _fetch_async(self, source: SourceDescriptor) -> FetcherResult:
        url = source.location
        try:
            async with self.client_factory(self.resilience) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            log.warning("Fetching %s failed with HTTP %s", url, status)
            raise SourceUnavailableError(
                f"HTTP {status} while fetching {url}", kind=classify_status(status)
            ) from exc
        except httpx.HTTPError as exc:
            log.warning("Fetching %s failed: %s", url, exc)
            raise SourceUnavailableError(
                f"Could not fetch {url}: {exc}", kind=SourceErrorKind.NETWORK
            ) from exc

        log.debug("Fetched %d bytes from %s", len(response.content), url)
        return FetcherResult(raw=response.content, location=str(response.url))


if TYPE_CHECKING:
    _fetcher_check: Fetcher = HttpFetcher()
