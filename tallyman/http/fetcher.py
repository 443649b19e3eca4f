"""Read-through caching GET with per-host rate limiting."""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import dataclasses as dc
import typing as typ

import httpx
import msgspec

from tallyman.http.cache import CacheStore, MemoryCacheStore
from tallyman.http.config import HttpConfig
from tallyman.http.errors import UpstreamError, UpstreamTimeoutError
from tallyman.http.query import QueryParams, encode_query
from tallyman.http.ratelimit import RateLimiterRegistry

_HTTP_ERROR_STATUS_THRESHOLD = 400


@dc.dataclass(frozen=True, slots=True)
class RequestSpec:
    """Everything that identifies and shapes one outbound GET.

    Attributes
    ----------
    url
        Absolute URL without a query string.
    params
        Query parameters; nested lists and mappings are bracket-encoded.
    headers
        Per-request headers merged over the client defaults. Headers are not
        part of the cache key.
    timeout
        Optional override of the fetcher's default timeout.

    """

    url: str
    params: QueryParams | None = None
    headers: cabc.Mapping[str, str] = dc.field(default_factory=dict)
    timeout: httpx.Timeout | None = None

    @property
    def host(self) -> str:
        """Return the host the request targets."""
        return httpx.URL(self.url).host

    def full_url(self) -> str:
        """Return the URL with the encoded query string appended."""
        query = encode_query(self.params)
        return f"{self.url}?{query}" if query else self.url


class FetchResult(msgspec.Struct, frozen=True, kw_only=True):
    """Outcome of a successful fetch."""

    payload: typ.Any
    status: int
    from_cache: bool


def _decode_body(response: httpx.Response) -> typ.Any:  # noqa: ANN401
    if not response.content:
        return None
    try:
        return msgspec.json.decode(response.content)
    except msgspec.DecodeError:
        return response.text


class CachingFetcher:
    """GET wrapper with a namespaced read-through cache.

    Cache hits return immediately without touching the rate limiter. Misses,
    and every call when caching is disabled, wait on the limiter for the
    target host before going to the network. Only successful (2xx/3xx)
    responses are cached.

    Parameters
    ----------
    namespace
        Prefix for cache keys (``airtable``, ``github``) so fetchers sharing a
        store never collide.
    limiters
        Registry holding the shared per-host limiters.
    store
        Cache backend. Defaults to a private :class:`MemoryCacheStore`.
    config
        Timeouts, TTL and the cache switch.
    http_client
        Optional pre-built client, e.g. with an ``httpx.MockTransport``. When
        omitted the fetcher creates and owns one.
    default_headers
        Headers applied to every request of an owned client.

    """

    def __init__(  # noqa: PLR0913
        self,
        namespace: str,
        *,
        limiters: RateLimiterRegistry,
        store: CacheStore | None = None,
        config: HttpConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
        default_headers: cabc.Mapping[str, str] | None = None,
    ) -> None:
        """Wire the cache, limiter registry and HTTP client together."""
        self._namespace = namespace
        self._limiters = limiters
        self._store = store if store is not None else MemoryCacheStore()
        self._config = config or HttpConfig()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=self._config.timeout(),
            headers=dict(default_headers or {}),
            follow_redirects=False,
        )

    @property
    def namespace(self) -> str:
        """Cache key prefix for this fetcher."""
        return self._namespace

    @property
    def cache_enabled(self) -> bool:
        """Whether responses are cached."""
        return self._config.cache_enabled

    async def aclose(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()

    def cache_key(self, spec: RequestSpec) -> str:
        """Return the namespaced identity of ``spec``."""
        return f"{self._namespace}:GET {spec.full_url()}"

    def invalidate(self, spec: RequestSpec) -> bool:
        """Drop the cached response for ``spec``, if any."""
        return self._store.delete(self.cache_key(spec))

    async def fetch(self, spec: RequestSpec) -> FetchResult:
        """Return the response payload for ``spec``.

        Raises
        ------
        UpstreamTimeoutError
            If the connect timeout or the total request budget elapses.
        UpstreamError
            On an invalid URL, a transport failure or an HTTP status of 400
            and above.

        """
        key = self.cache_key(spec)
        if self._config.cache_enabled:
            entry = self._store.get(key)
            if entry is not None:
                return FetchResult(
                    payload=entry.payload, status=entry.status, from_cache=True
                )

        response = await self._send(spec)
        payload = _decode_body(response)
        if self._config.cache_enabled:
            self._store.put(
                key,
                payload,
                status=response.status_code,
                ttl_s=self._config.cache_ttl_s,
            )
        return FetchResult(payload=payload, status=response.status_code, from_cache=False)

    async def _send(self, spec: RequestSpec) -> httpx.Response:
        url = spec.full_url()
        try:
            await self._limiters.acquire(spec.host)
            async with asyncio.timeout(self._config.timeout_s):
                response = await self._client.get(
                    url,
                    headers=dict(spec.headers),
                    timeout=spec.timeout or self._config.timeout(),
                )
        except httpx.InvalidURL as exc:
            raise UpstreamError.invalid_url(spec.url, str(exc)) from exc
        except (httpx.TimeoutException, TimeoutError) as exc:
            raise UpstreamTimeoutError.for_url(spec.url) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError.network_error(spec.url, str(exc)) from exc

        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise UpstreamError.http_error(spec.url, response.status_code)
        return response
