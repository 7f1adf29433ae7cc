"""Sender-aware logging context for tracing one conversation across modules.

Every inbound message is handled in its own asyncio task. The webhook sets
the sender id once per task and every record logged below it carries the
same ``sender_id`` attribute.

Usage:
    from tonerbot.logging_context import get_sender_logger, set_sender_id

    set_sender_id("whatsapp:+26771234567")
    logger = get_sender_logger(__name__)
    logger.info("Cart updated")  # record.sender_id == "whatsapp:+26771234567"
"""

import logging
from contextvars import ContextVar

_sender_id: ContextVar[str] = ContextVar("sender_id", default="NO_SENDER")


def set_sender_id(sender_id: str) -> None:
    """Set the sender id for the current async context."""
    _sender_id.set(sender_id)


def get_sender_id() -> str:
    """Retrieve the current sender id."""
    return _sender_id.get()


class SenderIdFilter(logging.Filter):
    """Injects sender_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.sender_id = _sender_id.get()  # type: ignore[attr-defined]
        return True


def get_sender_logger(name: str) -> logging.Logger:
    """Return a logger with the SenderIdFilter attached.

    The filter adds ``sender_id`` to each record so formatters can
    include ``%(sender_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, SenderIdFilter) for f in logger.filters):
        logger.addFilter(SenderIdFilter())
    return logger
