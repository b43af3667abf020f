"""Async HTTP client that retries, throttles and caches feed requests."""

from __future__ import annotations

from contextlib import nullcontext
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from feedimport.config.http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
)
from feedimport.config.storage import get_http_cache_path

if TYPE_CHECKING:
    from types import TracebackType

log = getLogger(__name__)


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        allowed_methods=("GET", "HEAD"),
        status_forcelist=sorted(policy.statuses),
        retry_on_exceptions=policy.exceptions,
    )


def build_cache_storage(config: CacheConfig | None) -> AsyncSqliteStorage | None:
    if config is None:
        return None
    database_path = ":memory:"
    if config.persistent:
        database_path = config.path or str(get_http_cache_path())
    return AsyncSqliteStorage(database_path=database_path, default_ttl=config.ttl_seconds)


class ResilientClient:
    """One client per fetch run; use as ``async with``."""

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter = _build_limiter(config.ratelimit)
        options = {
            "timeout": config.timeout_seconds,
            "headers": config.headers,
            "follow_redirects": config.follow_redirects,
            "transport": RetryTransport(transport=transport, retry=build_retry(config.retry)),
        }
        storage = build_cache_storage(config.cache)
        if storage is None:
            self._client = httpx.AsyncClient(**options)
        else:
            self._client = AsyncCacheClient(storage=storage, **options)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, url: str | httpx.URL) -> httpx.Response:
        async with self._limiter or nullcontext():
            log.debug("%s: GET %s", self.config.name, url)
            return await self._client.get(url)


def _build_limiter(ratelimit: RateLimit | None) -> AsyncLimiter | None:
    if ratelimit is None:
        return None
    return AsyncLimiter(ratelimit.max_calls, ratelimit.per_seconds)


__all__ = ["ResilientClient", "build_cache_storage", "build_retry"]
