"""Bounded-concurrency gate shared by oracle requests and file processing."""

import asyncio


class ConcurrencyGate:
    """Admits at most ``limit`` holders at a time.

    Waiters block on a condition rather than spinning. The slot is released
    in ``__aexit__`` whether the gated work succeeded or raised.

    Usage:
        gate = ConcurrencyGate(3)
        async with gate:
            await do_work()
    """

    def __init__(self, limit: int):
        if limit < 1:
            raise ValueError(f"Gate limit must be at least 1, got {limit}")
        self.limit = limit
        self._active = 0
        self._peak = 0
        self._condition = asyncio.Condition()

    @property
    def active(self) -> int:
        """Number of current holders."""
        return self._active

    @property
    def peak(self) -> int:
        """Highest number of simultaneous holders observed."""
        return self._peak

    async def acquire(self) -> None:
        async with self._condition:
            await self._condition.wait_for(lambda: self._active < self.limit)
            self._active += 1
            self._peak = max(self._peak, self._active)

    async def release(self) -> None:
        async with self._condition:
            self._active -= 1
            self._condition.notify()

    async def __aenter__(self) -> "ConcurrencyGate":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.release()
