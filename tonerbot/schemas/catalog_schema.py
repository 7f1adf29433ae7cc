"""Product data models."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Product(BaseModel):
    """Catalog entry. Owned and mutated by the catalog backend, read-only here."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(min_length=1)
    name: str
    unit_price: Decimal = Field(ge=0)
    stock_count: int = Field(default=0, ge=0)
    status: str = "active"
    description: Optional[str] = None

    @property
    def in_stock(self) -> bool:
        return self.stock_count > 0
