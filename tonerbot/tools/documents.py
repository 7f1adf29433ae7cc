"""
Quote PDF rendering and retrieval by quote number.

Rendering is deterministic: the canvas runs in reportlab's invariant mode,
which pins the creation date and document id, and every value printed
comes from the artifact itself.
"""

import logging
from collections import OrderedDict
from io import BytesIO
from typing import Optional

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from tonerbot.config import settings
from tonerbot.errors import RenderError
from tonerbot.schemas.quote_schema import QuoteArtifact
from tonerbot.utils import format_price

logger = logging.getLogger(__name__)

MARGIN_X = 40
TOP_OFFSET = 50
PAGE_BREAK_Y = 120
MAX_ARCHIVED_QUOTES = 500


def quote_filename(quote_number: str) -> str:
    return f"{quote_number}.pdf"


def render_quote_pdf(artifact: QuoteArtifact) -> bytes:
    """Lay out an issued quote as a single A4 document (more pages if long)."""
    biz = settings.business
    buf = BytesIO()
    try:
        c = canvas.Canvas(buf, pagesize=A4, invariant=1)
        c.setTitle(f"{biz.name} Quote {artifact.quote_number}")
        _, height = A4
        x = MARGIN_X
        y = height - TOP_OFFSET

        def line(txt: str, dy: int = 16, bold: bool = False, size: int = 11) -> None:
            nonlocal y
            c.setFont("Helvetica-Bold" if bold else "Helvetica", size)
            c.drawString(x, y, txt)
            y -= dy

        c.setFont("Helvetica-Bold", 18)
        c.drawCentredString(A4[0] / 2, y, f"{biz.name} Quote")
        y -= 30

        line(f"Quote number: {artifact.quote_number}")
        line(f"Customer: {artifact.customer_identity}")
        line(f"Date: {artifact.issued_at.strftime('%Y-%m-%d %H:%M %Z').strip()}")
        y -= 10

        c.setFont("Helvetica-Bold", 10)
        c.drawString(x, y, "Code")
        c.drawString(x + 90, y, "Item")
        c.drawRightString(x + 330, y, "Qty")
        c.drawRightString(x + 420, y, "Unit")
        c.drawRightString(x + 510, y, "Total")
        y -= 14

        c.setFont("Helvetica", 10)
        for quote_line in artifact.lines:
            if y < PAGE_BREAK_Y:
                c.showPage()
                c.setFont("Helvetica", 10)
                y = height - TOP_OFFSET
            c.drawString(x, y, quote_line.product_code[:14])
            c.drawString(x + 90, y, quote_line.product_name[:36])
            c.drawRightString(x + 330, y, str(quote_line.quantity))
            c.drawRightString(x + 420, y, format_price(quote_line.unit_price_snapshot))
            c.drawRightString(x + 510, y, format_price(quote_line.line_total))
            y -= 14

        y -= 12
        line(f"Total: {format_price(artifact.grand_total)} ({biz.currency_code})", bold=True, size=12)
        line(
            f"Payment: Send {artifact.grand_total:.2f} {biz.currency_code} via "
            f"{biz.payment_methods} to {biz.payment_number}.",
            size=10,
        )
        line("Include the quote number as your payment reference.", size=10)

        c.showPage()
        c.save()
    except (ValueError, TypeError, OSError) as exc:
        raise RenderError(f"Could not render quote {artifact.quote_number}: {exc}") from exc
    return buf.getvalue()


class QuoteArchive:
    """Rendered quotes kept in memory for retrieval by quote number.

    Only the most recent ``max_entries`` documents are retained.
    """

    def __init__(self, max_entries: int = MAX_ARCHIVED_QUOTES) -> None:
        self._documents: OrderedDict[str, bytes] = OrderedDict()
        self._max_entries = max_entries

    def store(self, quote_number: str, data: bytes) -> None:
        self._documents[quote_number] = data
        self._documents.move_to_end(quote_number)
        while len(self._documents) > self._max_entries:
            evicted, _ = self._documents.popitem(last=False)
            logger.debug("Quote evicted from archive: %s", evicted)

    def get_artifact_bytes(self, quote_number: str) -> Optional[bytes]:
        return self._documents.get(quote_number)

    def __len__(self) -> int:
        return len(self._documents)
