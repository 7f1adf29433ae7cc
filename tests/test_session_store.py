"""Tests for session storage and the idle-session sweeper."""

import asyncio
from datetime import timedelta

import pytest

from tonerbot.conversation.sweeper import run_session_sweeper, sweep_idle_sessions
from tonerbot.schemas.session_schema import QuoteState

from tests.conftest import FIXED_NOW

TWO_HOURS = timedelta(hours=2)


class TestSessionStore:
    def test_get_or_create_creates_empty_session(self, store):
        session = store.get_or_create("s1", FIXED_NOW)
        assert session.cart == []
        assert session.quote_state == QuoteState.IDLE
        assert session.quote_items == []
        assert session.last_activity == FIXED_NOW
        assert "s1" in store

    def test_get_or_create_returns_existing(self, store):
        first = store.get_or_create("s1", FIXED_NOW)
        first.cart.append("HP85A")
        assert store.get_or_create("s1").cart == ["HP85A"]
        assert len(store) == 1

    def test_get_missing_returns_none(self, store):
        assert store.get("nobody") is None

    def test_save_replaces(self, store):
        session = store.get_or_create("s1", FIXED_NOW)
        session.cart = ["A"]
        store.save(session)
        assert store.get("s1").cart == ["A"]

    def test_delete(self, store):
        store.get_or_create("s1", FIXED_NOW)
        assert store.delete("s1") is True
        assert store.delete("s1") is False


class TestExpiry:
    def test_sweep_removes_only_idle_sessions(self, store):
        store.get_or_create("old", FIXED_NOW - timedelta(hours=3))
        store.get_or_create("fresh", FIXED_NOW - timedelta(minutes=5))
        removed = store.sweep_expired(FIXED_NOW, TWO_HOURS)
        assert removed == 1
        assert "old" not in store
        assert "fresh" in store

    def test_sweep_ignores_quote_state(self, store):
        session = store.get_or_create("old", FIXED_NOW - timedelta(hours=3))
        session.quote_state = QuoteState.AWAITING_QUOTE_SELECTION
        assert store.sweep_expired(FIXED_NOW, TWO_HOURS) == 1

    def test_exactly_at_threshold_is_kept(self, store):
        store.get_or_create("edge", FIXED_NOW - TWO_HOURS)
        assert store.expired_senders(FIXED_NOW, TWO_HOURS) == []


class TestSweeper:
    @pytest.mark.asyncio
    async def test_sweep_deletes_and_forgets_lock(self, store, locks):
        store.get_or_create("old", FIXED_NOW - timedelta(hours=3))
        async with locks.hold("old"):
            pass
        removed = await sweep_idle_sessions(store, locks, TWO_HOURS, now=FIXED_NOW)
        assert removed == 1
        assert "old" not in store
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_sweep_skips_busy_sender(self, store, locks):
        store.get_or_create("busy", FIXED_NOW - timedelta(hours=3))
        async with locks.hold("busy"):
            removed = await sweep_idle_sessions(store, locks, TWO_HOURS, now=FIXED_NOW)
        assert removed == 0
        assert "busy" in store

    @pytest.mark.asyncio
    async def test_run_session_sweeper_stops_on_cancel(self, store, locks):
        store.get_or_create("old", FIXED_NOW - timedelta(days=1))
        task = asyncio.create_task(
            run_session_sweeper(store, locks, interval_sec=0.01, idle_threshold_sec=60)
        )
        for _ in range(100):
            if "old" not in store:
                break
            await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert "old" not in store
