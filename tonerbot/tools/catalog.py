"""
Product catalog lookup.

The engine only needs three read operations: exact code lookup, code
prefix lookup and a full listing ordered by name. Codes compare
case-insensitively everywhere. The in-memory backend is seeded with the
shop's toner price list and is the default; Firestore and Google Sheets
backends live in their own modules and are chosen by configuration.
"""

import logging
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from tonerbot.config import CatalogConfig
from tonerbot.schemas.catalog_schema import Product

logger = logging.getLogger(__name__)

DEFAULT_PRODUCTS: list[Product] = [
    Product(code="HP85A", name="HP 85A", unit_price=Decimal("450"), stock_count=12),
    Product(code="HP83X", name="HP 83X", unit_price=Decimal("520"), stock_count=8),
    Product(code="CANON728", name="Canon 728", unit_price=Decimal("400"), stock_count=0,
            status="backorder"),
    Product(code="MLTD105S", name="Samsung MLT-D105S", unit_price=Decimal("480"), stock_count=5),
    Product(code="TN2355", name="Brother TN-2355", unit_price=Decimal("390"), stock_count=10),
]


def canonical_code(code: str) -> str:
    """Case-folded, whitespace-trimmed key used for every code comparison."""
    return code.strip().upper()


def sort_by_name(products: Iterable[Product]) -> list[Product]:
    """Order products the way they are shown to senders."""
    return sorted(products, key=lambda p: (p.name.casefold(), canonical_code(p.code)))


def product_from_mapping(data: Mapping[str, Any], code: Optional[str] = None) -> Product:
    """Build a Product from a backend record.

    Records written by hand tend to say ``price``/``stock`` rather than
    ``unit_price``/``stock_count``; both spellings are accepted.
    """
    price = data.get("unit_price", data.get("price", 0))
    stock = data.get("stock_count", data.get("stock", 0))
    return Product(
        code=canonical_code(str(code or data.get("code", ""))),
        name=str(data.get("name", "")).strip(),
        unit_price=Decimal(str(price or 0)),
        stock_count=int(stock or 0),
        status=str(data.get("status") or "active"),
        description=data.get("description") or None,
    )


def first_prefix_match(products: Iterable[Product], query: str) -> Optional[Product]:
    """Return the lowest code starting with ``query``, or None."""
    prefix = canonical_code(query)
    if not prefix:
        return None
    matches = sorted(
        (p for p in products if canonical_code(p.code).startswith(prefix)),
        key=lambda p: canonical_code(p.code),
    )
    return matches[0] if matches else None


class CatalogStore:
    """Read-only catalog contract used by the conversation engine.

    Backends raise ``CatalogUnavailableError`` when the underlying store
    cannot be read. Absent products are ``None``, never an error.
    """

    async def find_by_code(self, code: str) -> Optional[Product]:
        raise NotImplementedError

    async def find_by_code_prefix(self, query: str) -> Optional[Product]:
        raise NotImplementedError

    async def list_all(self) -> list[Product]:
        raise NotImplementedError


class InMemoryCatalog(CatalogStore):
    """Catalog held in a dict keyed by canonical code."""

    def __init__(self, products: Optional[Iterable[Product]] = None) -> None:
        self._products: dict[str, Product] = {}
        for product in DEFAULT_PRODUCTS if products is None else products:
            self.upsert(product)

    async def find_by_code(self, code: str) -> Optional[Product]:
        return self._products.get(canonical_code(code))

    async def find_by_code_prefix(self, query: str) -> Optional[Product]:
        return first_prefix_match(self._products.values(), query)

    async def list_all(self) -> list[Product]:
        return sort_by_name(self._products.values())

    def upsert(self, product: Product) -> None:
        self._products[canonical_code(product.code)] = product

    def remove(self, code: str) -> bool:
        """Delete a product. Carts keep the code; lookups then skip it."""
        removed = self._products.pop(canonical_code(code), None)
        if removed is not None:
            logger.info("Product removed from catalog: %s", removed.code)
        return removed is not None


def build_catalog(config: CatalogConfig) -> CatalogStore:
    """Create the catalog backend named by ``CATALOG_BACKEND``."""
    if config.backend == "firestore":
        from tonerbot.tools.firestore_catalog import FirestoreCatalog

        return FirestoreCatalog.from_config(config)
    if config.backend == "sheets":
        from tonerbot.tools.sheets_catalog import SheetsCatalog

        return SheetsCatalog.from_config(config)
    logger.info("Using in-memory catalog with %d products", len(DEFAULT_PRODUCTS))
    return InMemoryCatalog()
