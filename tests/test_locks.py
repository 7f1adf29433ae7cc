"""Tests for per-sender locking."""

import asyncio

import pytest


class TestSenderLocks:
    @pytest.mark.asyncio
    async def test_same_sender_is_serialized(self, locks):
        events = []

        async def worker(name):
            async with locks.hold("s1"):
                events.append(f"{name}-in")
                await asyncio.sleep(0.01)
                events.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))
        assert events in (
            ["a-in", "a-out", "b-in", "b-out"],
            ["b-in", "b-out", "a-in", "a-out"],
        )

    @pytest.mark.asyncio
    async def test_different_senders_run_concurrently(self, locks):
        inside = asyncio.Event()

        async def holder():
            async with locks.hold("s1"):
                await asyncio.wait_for(inside.wait(), timeout=1)

        async def other():
            async with locks.hold("s2"):
                inside.set()

        await asyncio.gather(holder(), other())

    @pytest.mark.asyncio
    async def test_busy_while_held_and_free_after(self, locks):
        async with locks.hold("s1"):
            assert locks.is_busy("s1")
        assert not locks.is_busy("s1")

    @pytest.mark.asyncio
    async def test_discard_keeps_held_lock(self, locks):
        async with locks.hold("s1"):
            locks.discard("s1")
            assert len(locks) == 1
        locks.discard("s1")
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_lock_released_on_error(self, locks):
        with pytest.raises(RuntimeError):
            async with locks.hold("s1"):
                raise RuntimeError("boom")
        assert not locks.is_busy("s1")
