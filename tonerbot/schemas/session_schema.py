"""Per-sender conversation state."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from tonerbot.schemas.catalog_schema import Product
from tonerbot.schemas.quote_schema import QuoteLine


class QuoteState(str, Enum):
    """Where a sender is in the quote sub-dialog."""
    IDLE = "idle"
    AWAITING_QUOTE_SELECTION = "awaiting_quote_selection"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Session:
    """
    Conversation state for one sender, kept across inbound messages.

    The cart holds product codes only, never copies of products, so totals
    are always computed against the live catalog. ``catalog_snapshot`` is the
    numbered list shown at the start of a quote dialog and is the index
    basis for the sender's "NxQ" selection. ``customer_name`` is captured
    after the selection and printed on the quote as typed.
    """
    sender_id: str
    cart: list[str] = field(default_factory=list)
    quote_state: QuoteState = QuoteState.IDLE
    quote_items: list[QuoteLine] = field(default_factory=list)
    catalog_snapshot: list[Product] = field(default_factory=list)
    customer_name: Optional[str] = None
    last_activity: datetime = field(default_factory=_utcnow)

    def touch(self, now: datetime) -> None:
        self.last_activity = now
