"""
Quote selection parsing and quote number issuing.

Senders answer the numbered quote catalog with free text such as
``"1x2, 3x1"``: item 1 twice, item 3 once. Every ``<digits>x<digits>``
match is considered on its own. A match pointing outside the catalog or
asking for zero units is skipped and the rest of the text still counts.
"""

import logging
import re
import threading
import time
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Sequence

from tonerbot.schemas.catalog_schema import Product
from tonerbot.schemas.quote_schema import QuoteArtifact, QuoteLine

logger = logging.getLogger(__name__)

SELECTION_PATTERN = re.compile(r"(\d+)x(\d+)", re.IGNORECASE)
QUOTE_NUMBER_PREFIX = "QT"

_clock_lock = threading.Lock()
_last_millis = 0


def compile_quote(raw_text: str, catalog_snapshot: Sequence[Product]) -> list[QuoteLine]:
    """Turn a selection message into priced quote lines.

    Args:
        raw_text: The sender's message, unmodified.
        catalog_snapshot: Products in the order they were numbered for the
            sender (name ascending), index 1 being the first.

    Returns:
        Lines in the order they appear in the text. Duplicates are kept
        as separate lines. An empty list means nothing usable was found.
    """
    lines: list[QuoteLine] = []
    for match in SELECTION_PATTERN.finditer(raw_text):
        index, quantity = int(match.group(1)), int(match.group(2))
        if not 1 <= index <= len(catalog_snapshot):
            logger.debug("Skipping selection %r: index out of range", match.group(0))
            continue
        if quantity < 1:
            logger.debug("Skipping selection %r: quantity not positive", match.group(0))
            continue
        product = catalog_snapshot[index - 1]
        lines.append(QuoteLine(
            product_code=product.code,
            product_name=product.name,
            quantity=quantity,
            unit_price_snapshot=product.unit_price,
        ))
    return lines


def _next_millis() -> int:
    """Wall-clock milliseconds, bumped so no two calls return the same value."""
    global _last_millis
    with _clock_lock:
        now = time.time_ns() // 1_000_000
        _last_millis = now if now > _last_millis else _last_millis + 1
        return _last_millis


def generate_quote_number() -> str:
    """Issue a quote number such as ``QT-19A2B3C4D5E-7F3A09C1``.

    The time part never repeats inside one process; the random suffix
    keeps numbers from separate processes apart.
    """
    return f"{QUOTE_NUMBER_PREFIX}-{_next_millis():X}-{uuid.uuid4().hex[:8].upper()}"


def quote_total(lines: Sequence[QuoteLine]) -> Decimal:
    return sum((line.line_total for line in lines), Decimal("0"))


def build_quote_artifact(
    customer_identity: str,
    lines: Sequence[QuoteLine],
    issued_at: Optional[datetime] = None,
    quote_number: Optional[str] = None,
) -> QuoteArtifact:
    """Freeze compiled lines into an issued quote."""
    if not lines:
        raise ValueError("Cannot issue a quote without lines")
    artifact = QuoteArtifact(
        quote_number=quote_number or generate_quote_number(),
        customer_identity=customer_identity,
        lines=tuple(lines),
        grand_total=quote_total(lines),
        issued_at=issued_at or datetime.now(timezone.utc),
    )
    logger.info(
        "Quote issued: %s with %d line(s), total %s",
        artifact.quote_number, len(artifact.lines), artifact.grand_total,
    )
    return artifact
