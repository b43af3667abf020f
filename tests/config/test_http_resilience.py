from __future__ import annotations

from feedimport.adapters.http_resilience import build_cache_storage
from feedimport.config import CacheConfig, RateLimit, get_feed_resilience_config
from feedimport.config.http_resilience import DEFAULT_USER_AGENT


def test_defaults_send_a_user_agent_and_cache_in_memory() -> None:
    config = get_feed_resilience_config()

    assert config.headers == {"User-Agent": DEFAULT_USER_AGENT}
    assert config.cache == CacheConfig()
    assert config.cache is not None
    assert not config.cache.persistent
    assert config.ratelimit is None


def test_rate_limit_is_derived_from_calls_per_second() -> None:
    assert get_feed_resilience_config(max_calls_per_second=4).ratelimit == RateLimit(4, 1.0)
    assert get_feed_resilience_config(max_calls_per_second=0.5).ratelimit == RateLimit(1, 2.0)
    assert RateLimit.from_calls_per_second(0) is None


def test_cache_can_be_disabled() -> None:
    config = get_feed_resilience_config(cache=False)

    assert config.cache is None
    assert build_cache_storage(config.cache) is None
