"""Per-host outbound rate limiting.

The limiter keeps the reservation times of the last ``limit`` requests. A new
request may start once the oldest of those is a full ``period`` in the past,
so any window of ``period`` seconds holds at most ``limit`` requests. Slots
are reserved under a lock and slept outside it; concurrent callers queue in
reservation order and nothing is ever rejected.
"""

from __future__ import annotations

import asyncio
import collections
import collections.abc as cabc
import time

type MonotonicClock = cabc.Callable[[], float]
type Sleeper = cabc.Callable[[float], cabc.Awaitable[None]]

DEFAULT_REQUESTS_PER_SECOND = 5.0


class RateLimiter:
    """Sliding-window limiter shared by all callers of one upstream host.

    Parameters
    ----------
    requests_per_second
        Ceiling for requests started within any one-second window. Fractional
        ceilings (e.g. ``0.5``) are expressed as one request per ``1 / rate``
        seconds.
    clock
        Monotonic clock, injectable for tests.
    sleep
        Awaitable sleeper, injectable for tests.

    """

    def __init__(
        self,
        requests_per_second: float = DEFAULT_REQUESTS_PER_SECOND,
        *,
        clock: MonotonicClock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        """Configure the ceiling and timing primitives."""
        if requests_per_second <= 0:
            msg = f"requests_per_second must be positive, got {requests_per_second}"
            raise ValueError(msg)
        if requests_per_second >= 1:
            self._limit = int(requests_per_second)
            self._period = self._limit / requests_per_second
        else:
            self._limit = 1
            self._period = 1 / requests_per_second
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._slots: collections.deque[float] = collections.deque(maxlen=self._limit)

    @property
    def limit(self) -> int:
        """Requests allowed per window."""
        return self._limit

    @property
    def period(self) -> float:
        """Window length in seconds."""
        return self._period

    async def _reserve(self) -> float:
        async with self._lock:
            now = self._clock()
            slot = now
            if len(self._slots) == self._limit:
                slot = max(now, self._slots[0] + self._period)
            self._slots.append(slot)
            return slot - now

    async def acquire(self) -> float:
        """Wait until the next request is permitted.

        Returns
        -------
        float
            Seconds spent waiting (zero when a slot was free).

        """
        delay = await self._reserve()
        if delay > 0:
            await self._sleep(delay)
        return delay


class RateLimiterRegistry:
    """Hands out exactly one :class:`RateLimiter` per upstream host."""

    def __init__(
        self,
        requests_per_second: float = DEFAULT_REQUESTS_PER_SECOND,
        *,
        clock: MonotonicClock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        """Store the settings used for every limiter this registry creates."""
        self._requests_per_second = requests_per_second
        self._clock = clock
        self._sleep = sleep
        self._limiters: dict[str, RateLimiter] = {}

    def for_host(self, host: str) -> RateLimiter:
        """Return the shared limiter for ``host``, creating it on first use."""
        key = host.lower()
        limiter = self._limiters.get(key)
        if limiter is None:
            limiter = RateLimiter(
                self._requests_per_second, clock=self._clock, sleep=self._sleep
            )
            self._limiters[key] = limiter
        return limiter

    async def acquire(self, host: str) -> float:
        """Wait for permission to send one request to ``host``."""
        return await self.for_host(host).acquire()
