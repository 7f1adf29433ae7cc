"""Per-sender mutual exclusion for session read-modify-write."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

logger = logging.getLogger(__name__)


class SenderLocks:
    """One ``asyncio.Lock`` per sender id.

    Messages from the same sender run one at a time; different senders
    never wait on each other. The session sweeper uses the same locks so
    it cannot delete a session that a message is still working on.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, sender_id: str) -> AsyncIterator[None]:
        """Wait for and hold the sender's lock."""
        lock = self._locks.get(sender_id)
        if lock is None:
            lock = self._locks[sender_id] = asyncio.Lock()
        # Count waiters too, so discard() never drops a lock someone is queued on
        self._users[sender_id] = self._users.get(sender_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[sender_id] -= 1
            if not self._users[sender_id]:
                del self._users[sender_id]

    def is_busy(self, sender_id: str) -> bool:
        """True while any task holds or waits for the sender's lock."""
        return self._users.get(sender_id, 0) > 0

    def discard(self, sender_id: str) -> None:
        """Forget an idle sender's lock."""
        if not self.is_busy(sender_id):
            self._locks.pop(sender_id, None)

    def __len__(self) -> int:
        return len(self._locks)
