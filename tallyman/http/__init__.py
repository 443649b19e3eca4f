"""Outbound HTTP primitives: rate limiting, caching and nested query encoding.

Public API
----------
CachingFetcher
    Read-through TTL cache around a rate-limited GET.
RequestSpec
    Explicit description of one outbound request.
FetchResult
    Payload, status and whether it came from the cache.
RateLimiter / RateLimiterRegistry
    Per-host request ceilings shared by every caller.
MemoryCacheStore
    Process-local cache backend.
HttpConfig
    Timeouts, TTL, rate and the cache switch.
FetchError / UpstreamError / UpstreamTimeoutError
    Failures surfaced by the fetcher.
"""

from __future__ import annotations

from .cache import CacheEntry, CacheStore, MemoryCacheStore
from .config import HttpConfig
from .errors import FetchError, UpstreamError, UpstreamTimeoutError
from .fetcher import CachingFetcher, FetchResult, RequestSpec
from .query import encode_query, flatten_query
from .ratelimit import RateLimiter, RateLimiterRegistry

__all__ = [
    "CacheEntry",
    "CacheStore",
    "CachingFetcher",
    "FetchError",
    "FetchResult",
    "HttpConfig",
    "MemoryCacheStore",
    "RateLimiter",
    "RateLimiterRegistry",
    "RequestSpec",
    "UpstreamError",
    "UpstreamTimeoutError",
    "encode_query",
    "flatten_query",
]
