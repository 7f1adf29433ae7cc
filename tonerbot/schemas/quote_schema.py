"""Quote line items and the issued quote artifact."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class QuoteLine(BaseModel):
    """One priced selection from a quote request.

    The unit price is captured from the catalog snapshot when the line is
    compiled and is never re-queried afterwards.
    """

    model_config = ConfigDict(frozen=True)

    product_code: str
    product_name: str
    quantity: int = Field(gt=0)
    unit_price_snapshot: Decimal = Field(ge=0)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price_snapshot * self.quantity


class QuoteArtifact(BaseModel):
    """A completed quote. Immutable once issued."""

    model_config = ConfigDict(frozen=True)

    quote_number: str
    customer_identity: str
    lines: tuple[QuoteLine, ...]
    grand_total: Decimal
    issued_at: datetime
