"""
Periodic removal of idle sessions.

Runs as a background asyncio task next to the webhook. Each idle session
is removed under its sender's lock, and a sender whose message is still
being handled is left for the next round.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from tonerbot.conversation.locks import SenderLocks
from tonerbot.conversation.session_store import SessionStore

logger = logging.getLogger(__name__)


async def sweep_idle_sessions(
    store: SessionStore,
    locks: SenderLocks,
    idle_threshold: timedelta,
    now: Optional[datetime] = None,
) -> int:
    """Remove sessions idle for longer than ``idle_threshold``.

    Returns:
        Number of sessions removed.
    """
    now = now or datetime.now(timezone.utc)
    removed = 0
    for sender_id in store.expired_senders(now, idle_threshold):
        if locks.is_busy(sender_id):
            logger.debug("Sweep skipped busy sender %s", sender_id)
            continue
        async with locks.hold(sender_id):
            session = store.get(sender_id)
            if session is None or session.last_activity >= now - idle_threshold:
                continue
            store.delete(sender_id)
            removed += 1
        locks.discard(sender_id)
    if removed:
        logger.info("Session sweep removed %d idle session(s), %d remaining", removed, len(store))
    return removed


async def run_session_sweeper(
    store: SessionStore,
    locks: SenderLocks,
    interval_sec: float,
    idle_threshold_sec: float,
) -> None:
    """Sweep forever, every ``interval_sec`` seconds, until cancelled."""
    idle_threshold = timedelta(seconds=idle_threshold_sec)
    logger.info(
        "Session sweeper started (every %ss, idle threshold %ss)",
        interval_sec, idle_threshold_sec,
    )
    while True:
        await asyncio.sleep(interval_sec)
        try:
            await sweep_idle_sessions(store, locks, idle_threshold)
        except Exception:
            logger.exception("Session sweep failed; retrying next interval")
