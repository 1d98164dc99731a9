"""
Async Reader/Writer Lock Unit Tests
===================================
"""

import asyncio

import pytest

from sanerss.utils.rwlock import AsyncRWLock


class TestAsyncRWLock:
    @pytest.mark.asyncio
    async def test_readers_share_access(self):
        lock = AsyncRWLock()
        inside = asyncio.Event()
        release = asyncio.Event()

        async def reader():
            async with lock.read():
                if lock.readers == 2:
                    inside.set()
                await release.wait()

        tasks = [asyncio.create_task(reader()) for _ in range(2)]
        await asyncio.wait_for(inside.wait(), timeout=1)
        assert lock.readers == 2
        release.set()
        await asyncio.gather(*tasks)
        assert lock.readers == 0

    @pytest.mark.asyncio
    async def test_writer_excludes_readers(self):
        lock = AsyncRWLock()
        order = []

        async with lock.write():
            reader = asyncio.create_task(self._read(lock, order))
            await asyncio.sleep(0.01)
            assert order == []
            assert lock.writer_active
            order.append("write")

        await reader
        assert order == ["write", "read"]

    @pytest.mark.asyncio
    async def test_waiting_writer_blocks_new_readers(self):
        lock = AsyncRWLock()
        order = []
        release_first = asyncio.Event()

        async def first_reader():
            async with lock.read():
                await release_first.wait()
                order.append("first-read")

        async def writer():
            async with lock.write():
                order.append("write")

        t1 = asyncio.create_task(first_reader())
        await asyncio.sleep(0.01)
        t2 = asyncio.create_task(writer())
        await asyncio.sleep(0.01)
        t3 = asyncio.create_task(self._read(lock, order))
        await asyncio.sleep(0.01)

        assert order == []
        release_first.set()
        await asyncio.gather(t1, t2, t3)
        assert order == ["first-read", "write", "read"]

    @pytest.mark.asyncio
    async def test_cancelled_writer_unblocks_readers(self):
        lock = AsyncRWLock()
        release = asyncio.Event()

        async def holder():
            async with lock.read():
                await release.wait()

        async def writer():
            async with lock.write():
                pass

        t1 = asyncio.create_task(holder())
        await asyncio.sleep(0.01)
        w = asyncio.create_task(writer())
        await asyncio.sleep(0.01)
        w.cancel()
        with pytest.raises(asyncio.CancelledError):
            await w

        order = []
        await asyncio.wait_for(self._read(lock, order), timeout=1)
        assert order == ["read"]
        release.set()
        await t1

    @pytest.mark.asyncio
    async def test_reader_cancelled_during_release_is_not_leaked(self):
        lock = AsyncRWLock()
        release = asyncio.Event()
        written = []

        async def holder():
            async with lock.read():
                await release.wait()

        async def writer():
            async with lock.write():
                written.append(True)

        reader_task = asyncio.create_task(holder())
        await asyncio.sleep(0.01)
        writer_task = asyncio.create_task(writer())
        await asyncio.sleep(0.01)

        # Keep the condition busy so the reader blocks inside its release
        await lock._cond.acquire()
        release.set()
        await asyncio.sleep(0.01)
        reader_task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await reader_task

        assert lock.readers == 0
        lock._cond.release()

        await asyncio.wait_for(writer_task, timeout=1)
        assert written == [True]
        assert not lock.writer_active

    @pytest.mark.asyncio
    async def test_writer_cancelled_during_release_is_not_leaked(self):
        lock = AsyncRWLock()
        release = asyncio.Event()

        async def holder():
            async with lock.write():
                await release.wait()

        writer_task = asyncio.create_task(holder())
        await asyncio.sleep(0.01)
        reader_task = asyncio.create_task(self._read(lock, []))
        await asyncio.sleep(0.01)

        await lock._cond.acquire()
        release.set()
        await asyncio.sleep(0.01)
        writer_task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await writer_task

        assert not lock.writer_active
        lock._cond.release()

        await asyncio.wait_for(reader_task, timeout=1)
        assert lock.readers == 0

    @staticmethod
    async def _read(lock, order):
        async with lock.read():
            order.append("read")
