"""Shared test fixtures and helpers."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

import pytest

from tonerbot.conversation.engine import ConversationEngine
from tonerbot.conversation.locks import SenderLocks
from tonerbot.conversation.session_store import SessionStore
from tonerbot.conversation.state_machine import QuoteDialogStateMachine
from tonerbot.errors import CatalogUnavailableError
from tonerbot.schemas.catalog_schema import Product
from tonerbot.tools.catalog import CatalogStore, InMemoryCatalog

FIXED_NOW = datetime(2025, 3, 15, 10, 0, tzinfo=timezone.utc)
SENDER = "whatsapp:+26771234567"


def make_product(
    code: str,
    name: Optional[str] = None,
    price: str = "100",
    stock: int = 5,
) -> Product:
    """Helper to create a Product with sensible defaults."""
    return Product(
        code=code,
        name=name or code,
        unit_price=Decimal(price),
        stock_count=stock,
    )


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FailingCatalog(CatalogStore):
    """Catalog whose backend is always down."""

    async def find_by_code(self, code):
        raise CatalogUnavailableError("backend down")

    async def find_by_code_prefix(self, query):
        raise CatalogUnavailableError("backend down")

    async def list_all(self):
        raise CatalogUnavailableError("backend down")


@pytest.fixture
def catalog():
    """Three products named so that name order is A, B, C."""
    return InMemoryCatalog([
        make_product("CCC1", "Alpha Toner", "100"),
        make_product("AAA1", "Beta Toner", "200", stock=0),
        make_product("BBB1", "Gamma Toner", "50"),
    ])


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def locks():
    return SenderLocks()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def quote_dialog():
    return QuoteDialogStateMachine()


@pytest.fixture
def engine(catalog, store, locks, clock):
    return ConversationEngine(
        catalog=catalog,
        sessions=store,
        locks=locks,
        public_base_url="https://bot.example.com",
        clock=clock,
    )
