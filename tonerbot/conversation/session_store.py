"""
In-process session storage keyed by sender id.

The store does no locking of its own: callers serialize per sender with
``SenderLocks``. Swapping in an external store only requires the same
four operations.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from tonerbot.schemas.session_schema import Session

logger = logging.getLogger(__name__)


class SessionStore:
    """Mapping from sender id to that sender's Session."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def get(self, sender_id: str) -> Optional[Session]:
        return self._sessions.get(sender_id)

    def get_or_create(self, sender_id: str, now: Optional[datetime] = None) -> Session:
        """Return the sender's session, creating an empty one on first contact."""
        session = self._sessions.get(sender_id)
        if session is None:
            session = Session(sender_id=sender_id,
                              last_activity=now or datetime.now(timezone.utc))
            self._sessions[sender_id] = session
            logger.info("Session created for %s", sender_id)
        return session

    def save(self, session: Session) -> None:
        """Store the session, replacing whatever was there (last write wins)."""
        self._sessions[session.sender_id] = session

    def delete(self, sender_id: str) -> bool:
        return self._sessions.pop(sender_id, None) is not None

    def expired_senders(self, now: datetime, idle_threshold: timedelta) -> list[str]:
        """Sender ids whose last activity is older than ``idle_threshold``."""
        cutoff = now - idle_threshold
        return [sid for sid, s in self._sessions.items() if s.last_activity < cutoff]

    def sweep_expired(self, now: datetime, idle_threshold: timedelta) -> int:
        """Remove every idle session, whatever its quote state.

        Returns:
            Number of sessions removed.
        """
        expired = self.expired_senders(now, idle_threshold)
        for sender_id in expired:
            del self._sessions[sender_id]
        if expired:
            logger.info("Swept %d idle session(s)", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, sender_id: object) -> bool:
        return sender_id in self._sessions
