"""Response cache stores for :mod:`tallyman.http.fetcher`."""

from __future__ import annotations

import collections.abc as cabc
import math
import time
import typing as typ

import msgspec

type MonotonicClock = cabc.Callable[[], float]


class CacheEntry(msgspec.Struct, frozen=True, kw_only=True):
    """A cached upstream response.

    Attributes
    ----------
    key
        Namespaced request identity.
    payload
        Decoded response body.
    status
        HTTP status of the cached response.
    expires_at
        Monotonic deadline after which the entry is stale.

    """

    key: str
    payload: typ.Any
    status: int
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        """Return True while ``now`` is before the expiry deadline."""
        return now < self.expires_at


@typ.runtime_checkable
class CacheStore(typ.Protocol):
    """Storage backend for cached responses."""

    def get(self, key: str) -> CacheEntry | None:
        """Return the fresh entry for ``key`` or ``None``."""
        ...

    def put(self, key: str, payload: typ.Any, *, status: int, ttl_s: float) -> CacheEntry:  # noqa: ANN401
        """Store a full entry for ``key``, replacing any previous one."""
        ...

    def delete(self, key: str) -> bool:
        """Drop ``key``; return True when an entry existed."""
        ...


class MemoryCacheStore:
    """Process-local TTL cache.

    Entries are immutable and stored with a single dict assignment, so a
    concurrent reader sees either the previous entry or the new one, never a
    partial write. Eviction is purely time based: stale entries are dropped
    when read, by :meth:`purge_expired`, and by any :meth:`put` made after
    the earliest stored deadline has passed.
    """

    def __init__(self, *, clock: MonotonicClock = time.monotonic) -> None:
        """Create an empty store using ``clock`` for expiry checks."""
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._next_expiry = math.inf

    def __len__(self) -> int:
        """Return the number of stored entries, fresh or not."""
        return len(self._entries)

    def get(self, key: str) -> CacheEntry | None:
        """Return the fresh entry for ``key`` or ``None``."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_fresh(self._clock()):
            self._entries.pop(key, None)
            return None
        return entry

    def put(self, key: str, payload: typ.Any, *, status: int, ttl_s: float) -> CacheEntry:  # noqa: ANN401
        """Store ``payload`` under ``key`` for ``ttl_s`` seconds."""
        now = self._clock()
        if now >= self._next_expiry:
            self.purge_expired()
        entry = CacheEntry(
            key=key,
            payload=payload,
            status=status,
            expires_at=now + ttl_s,
        )
        self._entries[key] = entry
        self._next_expiry = min(self._next_expiry, entry.expires_at)
        return entry

    def delete(self, key: str) -> bool:
        """Drop ``key``; return True when an entry existed."""
        return self._entries.pop(key, None) is not None

    def purge_expired(self) -> int:
        """Remove stale entries and return how many were dropped."""
        now = self._clock()
        stale = [key for key, entry in self._entries.items() if not entry.is_fresh(now)]
        for key in stale:
            del self._entries[key]
        self._next_expiry = min(
            (entry.expires_at for entry in self._entries.values()), default=math.inf
        )
        return len(stale)

    def clear(self, *, namespace: str | None = None) -> None:
        """Remove all entries, or only those under ``namespace``."""
        if namespace is None:
            self._entries.clear()
            self._next_expiry = math.inf
            return
        prefix = f"{namespace}:"
        for key in [k for k in self._entries if k.startswith(prefix)]:
            del self._entries[key]
