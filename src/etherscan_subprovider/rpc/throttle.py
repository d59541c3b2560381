"""Sliding-window rate limiter and the throttled executor built on it.

At most ``max_per_second`` executions begin within any one-second window.
Items released faster than that wait in the executor's own FIFO queue.
"""

import asyncio
import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RateLimiter:
    """
    Sliding-window limiter on how many calls may begin per window.

    Waiters are granted slots in arrival order: ``acquire`` holds the lock
    while it sleeps, so a follow-up fetch from a call already in flight
    (such as an eth_getLogs receipt) waits behind any caller that is
    already sleeping for a slot.

    Parameters
    ----------
    max_per_second : int
        Maximum number of calls allowed to start within one window
    window : float
        Window length in seconds

    """

    def __init__(self, max_per_second: int = 5, window: float = 1.0) -> None:
        if max_per_second < 1:
            msg = "max_per_second must be at least 1"
            raise ValueError(msg)
        self.max_per_second = max_per_second
        self.window = window
        self._starts: deque[float] = deque()
        self._lock = asyncio.Lock()

    def _prune(self, now: float) -> None:
        """Remove start timestamps that have left the window."""
        cutoff = now - self.window
        while self._starts and self._starts[0] <= cutoff:
            self._starts.popleft()

    def wait_time(self, now: float) -> float:
        """
        Time to wait before the next call may start.

        Returns 0 if a call can start immediately.
        """
        self._prune(now)
        if len(self._starts) < self.max_per_second:
            return 0.0
        return max(self._starts[0] + self.window - now, 0.0)

    async def acquire(self) -> None:
        """Block until a slot is free, then record a call start."""
        # Holding the lock while sleeping keeps waiters in arrival order
        async with self._lock:
            while True:
                now = time.monotonic()
                wait = self.wait_time(now)
                if wait <= 0:
                    self._starts.append(now)
                    return
                await asyncio.sleep(wait)

    def get_stats(self) -> dict:
        """Get current rate limit stats."""
        self._prune(time.monotonic())
        return {
            "current": len(self._starts),
            "max_per_second": self.max_per_second,
            "window": self.window,
        }


class ThrottledExecutor(Generic[T]):
    """
    Runs ``func(item)`` for submitted items, gated by a RateLimiter.

    Items start in submission order. Each started call runs as its own task,
    so slow calls never hold back later starts.

    Parameters
    ----------
    limiter : RateLimiter
        Shared rate limiter
    func : Callable[[T], Awaitable[None]]
        Execution function; must handle its own errors

    """

    def __init__(self, limiter: RateLimiter, func: Callable[[T], Awaitable[None]]) -> None:
        self.limiter = limiter
        self.func = func
        self._pending: deque[T] = deque()
        self._in_flight: set[asyncio.Task] = set()
        self._wakeup = asyncio.Event()
        self._worker: asyncio.Task | None = None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def submit(self, item: T) -> None:
        """Queue an item for rate-limited execution."""
        self._pending.append(item)
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._run())
        self._wakeup.set()

    async def _run(self) -> None:
        while True:
            if not self._pending:
                self._wakeup.clear()
                await self._wakeup.wait()
                continue

            await self.limiter.acquire()
            # cancel() may have drained the queue while we waited
            if not self._pending:
                continue
            item = self._pending.popleft()
            task = asyncio.get_running_loop().create_task(self.func(item))
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)

    def cancel(self) -> list[T]:
        """
        Stop starting new calls and return the items that never started.

        Calls already started keep running to completion.

        Returns
        -------
        list[T]
            Not-yet-started items, in submission order

        """
        if self._worker is not None:
            self._worker.cancel()
            self._worker = None
        cancelled = list(self._pending)
        self._pending.clear()
        if cancelled:
            logger.debug("Cancelled %d throttled calls", len(cancelled))
        return cancelled

    async def join(self) -> None:
        """Wait for all started calls to finish."""
        while self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)
