"""Settings for the HTTP client used to fetch feeds."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

import httpx

DEFAULT_USER_AGENT: Final[str] = "feedimport (+https://pypi.org/project/feedimport/)"
DEFAULT_FEED_TIMEOUT_SECONDS: Final[float] = 30.0

# Transient upstream failures worth another attempt
RETRYABLE_STATUSES: Final[frozenset[int]] = frozenset({408, 429, 500, 502, 503, 504})


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    total: int = 3
    backoff_factor: float = 0.5
    max_backoff_wait: float = 30.0
    statuses: frozenset[int] = RETRYABLE_STATUSES
    exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )


@dataclass(slots=True, frozen=True)
class RateLimit:
    """At most ``max_calls`` requests in any window of ``per_seconds``."""

    max_calls: int
    per_seconds: float

    @classmethod
    def from_calls_per_second(cls, rate: float | None) -> RateLimit | None:
        if not rate:
            return None
        if rate >= 1:
            return cls(max_calls=int(rate), per_seconds=1.0)
        return cls(max_calls=1, per_seconds=1.0 / rate)


@dataclass(slots=True, frozen=True)
class CacheConfig:
    """Conditional-request cache; in memory unless ``persistent``."""

    persistent: bool = False
    path: str | None = None
    ttl_seconds: float | None = None


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = DEFAULT_FEED_TIMEOUT_SECONDS
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = field(default_factory=CacheConfig)
    follow_redirects: bool = True

    @property
    def headers(self) -> dict[str, str]:
        return {"User-Agent": self.user_agent}


def get_feed_resilience_config(
    *,
    name: str = "feeds",
    timeout_seconds: float = DEFAULT_FEED_TIMEOUT_SECONDS,
    user_agent: str = DEFAULT_USER_AGENT,
    max_calls_per_second: float | None = None,
    cache: bool = True,
) -> ResilienceConfig:
    return ResilienceConfig(
        name=name,
        user_agent=user_agent,
        timeout_seconds=timeout_seconds,
        ratelimit=RateLimit.from_calls_per_second(max_calls_per_second),
        cache=CacheConfig() if cache else None,
    )
