"""
Async Reader/Writer Lock
========================

Many concurrent readers or one writer. Waiting writers block new readers so a
busy serving surface cannot starve the poller.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Set


class AsyncRWLock:
    """Writer-preferring reader/writer lock for asyncio tasks.

    Releasing never awaits before the counters are updated, so a task
    cancelled on its way out cannot leave a reader or writer behind.
    """

    def __init__(self):
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0
        self._wakeups: Set[asyncio.Task] = set()

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def writer_active(self) -> bool:
        return self._writer

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        """Hold shared access for the body of the ``async with`` block."""
        async with self._cond:
            await self._cond.wait_for(
                lambda: not self._writer and self._waiting_writers == 0
            )
            self._readers += 1
        try:
            yield
        finally:
            self._readers -= 1
            if self._readers == 0:
                await self._wake_waiters()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        """Hold exclusive access for the body of the ``async with`` block."""
        async with self._cond:
            self._waiting_writers += 1
            try:
                await self._cond.wait_for(
                    lambda: not self._writer and self._readers == 0
                )
            finally:
                self._waiting_writers -= 1
                # A cancelled writer may have been the only thing holding readers back
                self._cond.notify_all()
            self._writer = True
        try:
            yield
        finally:
            self._writer = False
            await self._wake_waiters()

    async def _wake_waiters(self) -> None:
        # The wakeup runs as its own task so it still happens if the releasing
        # task is cancelled while waiting for the condition's lock.
        task = asyncio.ensure_future(self._notify_all())
        self._wakeups.add(task)
        task.add_done_callback(self._wakeups.discard)
        await asyncio.shield(task)

    async def _notify_all(self) -> None:
        async with self._cond:
            self._cond.notify_all()
