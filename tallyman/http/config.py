"""Configuration for the cached, rate-limited fetch path."""

from __future__ import annotations

import dataclasses as dc

import httpx

from tallyman.config import env_bool, env_positive_float

_DEFAULT_CACHE_TTL_S = 3 * 60 * 60
_DEFAULT_REQUESTS_PER_SECOND = 5.0
_DEFAULT_CONNECT_TIMEOUT_S = 3.0
_DEFAULT_TIMEOUT_S = 10.0


@dc.dataclass(frozen=True, slots=True)
class HttpConfig:
    """Settings shared by every :class:`~tallyman.http.fetcher.CachingFetcher`.

    Attributes
    ----------
    cache_enabled
        When False, every fetch bypasses the cache and hits the limiter.
    cache_ttl_s
        Lifetime of a cached response in seconds (three hours by default).
    requests_per_second
        Ceiling enforced per upstream host.
    connect_timeout_s
        Connection establishment budget.
    timeout_s
        Overall budget for a single request.

    """

    cache_enabled: bool = True
    cache_ttl_s: float = _DEFAULT_CACHE_TTL_S
    requests_per_second: float = _DEFAULT_REQUESTS_PER_SECOND
    connect_timeout_s: float = _DEFAULT_CONNECT_TIMEOUT_S
    timeout_s: float = _DEFAULT_TIMEOUT_S

    def timeout(self) -> httpx.Timeout:
        """Return the httpx timeout for these budgets."""
        return httpx.Timeout(self.timeout_s, connect=self.connect_timeout_s)

    @classmethod
    def from_env(cls) -> HttpConfig:
        """Build configuration from environment variables.

        Reads ``TALLYMAN_CACHE_ENABLED``, ``TALLYMAN_CACHE_TTL_S``,
        ``TALLYMAN_RATE_LIMIT_RPS``, ``TALLYMAN_CONNECT_TIMEOUT_S`` and
        ``TALLYMAN_TIMEOUT_S``; unset values keep their defaults.
        """
        return cls(
            cache_enabled=env_bool("TALLYMAN_CACHE_ENABLED", default=True),
            cache_ttl_s=env_positive_float("TALLYMAN_CACHE_TTL_S", _DEFAULT_CACHE_TTL_S),
            requests_per_second=env_positive_float(
                "TALLYMAN_RATE_LIMIT_RPS", _DEFAULT_REQUESTS_PER_SECOND
            ),
            connect_timeout_s=env_positive_float(
                "TALLYMAN_CONNECT_TIMEOUT_S", _DEFAULT_CONNECT_TIMEOUT_S
            ),
            timeout_s=env_positive_float("TALLYMAN_TIMEOUT_S", _DEFAULT_TIMEOUT_S),
        )
