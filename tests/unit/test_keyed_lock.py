"""Unit tests for KeyedLock."""

from __future__ import annotations

import asyncio

import pytest

from otpgate.otp.locks import KeyedLock


@pytest.mark.unit
class TestKeyedLock:
    async def test_lock_dropped_after_release(self) -> None:
        locks = KeyedLock()
        async with locks.hold("a"):
            assert locks.locked("a")
            assert len(locks) == 1
        assert not locks.locked("a")
        assert len(locks) == 0

    async def test_same_key_serializes(self) -> None:
        locks = KeyedLock()
        order: list[str] = []

        async def worker(name: str) -> None:
            async with locks.hold("k"):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(worker("one"), worker("two"))
        assert order == ["one-in", "one-out", "two-in", "two-out"]
        assert len(locks) == 0

    async def test_distinct_keys_run_concurrently(self) -> None:
        locks = KeyedLock()
        inside = asyncio.Event()
        release = asyncio.Event()

        async def holder() -> None:
            async with locks.hold("a"):
                inside.set()
                await release.wait()

        task = asyncio.create_task(holder())
        await inside.wait()
        async with locks.hold("b"):
            assert locks.locked("a")
        release.set()
        await task

    async def test_release_on_exception(self) -> None:
        locks = KeyedLock()
        with pytest.raises(RuntimeError):
            async with locks.hold("a"):
                raise RuntimeError("boom")
        assert len(locks) == 0

    async def test_cancelled_waiter_leaves_registry_empty(self) -> None:
        locks = KeyedLock()
        async with locks.hold("a"):
            waiter = asyncio.create_task(self._acquire(locks, "a"))
            await asyncio.sleep(0)
            assert not waiter.done()
            waiter.cancel()
            with pytest.raises(asyncio.CancelledError):
                await waiter
            assert len(locks) == 1
        assert len(locks) == 0
        assert locks._waiters == {}

    @staticmethod
    async def _acquire(locks: KeyedLock, key: str) -> None:
        async with locks.hold(key):
            pass
