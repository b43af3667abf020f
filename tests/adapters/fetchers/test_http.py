from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

import httpx
import pytest

from feedimport.adapters.fetchers import HttpFetcher
from feedimport.adapters.fetchers.http import classify_status
from feedimport.adapters.http_resilience import ResilientClient
from feedimport.config.http_resilience import RetryPolicy, get_feed_resilience_config
from feedimport.domain.errors import SourceErrorKind, SourceUnavailableError
from feedimport.domain.ports import SourceDescriptor

if TYPE_CHECKING:
    from collections.abc import Callable

    from feedimport.config.http_resilience import ResilienceConfig

FEED_URL = "https://example.com/feed.xml"


def _fetcher(handler: Callable[[httpx.Request], httpx.Response]) -> HttpFetcher:
    resilience = replace(
        get_feed_resilience_config(cache=False, user_agent="feedimport-tests"),
        retry=RetryPolicy(total=0),
    )

    def factory(config: ResilienceConfig) -> ResilientClient:
        return ResilientClient(config, transport=httpx.MockTransport(handler))

    return HttpFetcher(resilience=resilience, client_factory=factory)


def _source(location: str = FEED_URL) -> SourceDescriptor:
    return SourceDescriptor(source_id="feed", location=location)


def test_fetch_returns_body_and_final_location() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"<rss/>")

    result = _fetcher(handler).fetch(_source())

    assert result.raw == b"<rss/>"
    assert result.location == FEED_URL
    assert seen[0].headers["User-Agent"] == "feedimport-tests"


def test_redirects_are_followed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old.xml":
            return httpx.Response(301, headers={"Location": FEED_URL})
        return httpx.Response(200, content=b"moved")

    result = _fetcher(handler).fetch(_source("https://example.com/old.xml"))

    assert result.raw == b"moved"
    assert result.location == FEED_URL


@pytest.mark.parametrize(
    ("status", "kind"),
    [
        (404, SourceErrorKind.NOT_FOUND),
        (410, SourceErrorKind.NOT_FOUND),
        (401, SourceErrorKind.PERMISSION),
        (403, SourceErrorKind.PERMISSION),
        (500, SourceErrorKind.NETWORK),
    ],
)
def test_http_errors_are_classified(status: int, kind: SourceErrorKind) -> None:
    fetcher = _fetcher(lambda request: httpx.Response(status))

    with pytest.raises(SourceUnavailableError) as excinfo:
        fetcher.fetch(_source())

    assert excinfo.value.kind is kind
    assert classify_status(status) is kind


def test_transport_errors_are_network_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(SourceUnavailableError) as excinfo:
        _fetcher(handler).fetch(_source())

    assert excinfo.value.kind is SourceErrorKind.NETWORK
