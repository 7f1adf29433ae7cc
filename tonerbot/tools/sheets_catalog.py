"""
Google Sheets-backed catalog.

The worksheet's first row is a header; the columns read are ``code``,
``name``, ``price``, ``stock`` and ``status`` (``unit_price`` and
``stock_count`` are accepted as well). The sheet is re-read on every
lookup so price edits in the spreadsheet apply immediately.
"""

import asyncio
import logging
from typing import Any, Optional

import gspread
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials

from tonerbot.config import CatalogConfig
from tonerbot.errors import CatalogUnavailableError
from tonerbot.schemas.catalog_schema import Product
from tonerbot.tools.catalog import (
    CatalogStore,
    canonical_code,
    first_prefix_match,
    product_from_mapping,
    sort_by_name,
)

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets.readonly"]

_READ_ERRORS = (gspread.exceptions.GSpreadException, GoogleAuthError, OSError,
                ValueError, ArithmeticError)


class SheetsCatalog(CatalogStore):
    """Catalog reading rows from one worksheet."""

    def __init__(self, worksheet: Any) -> None:
        self._worksheet = worksheet

    @classmethod
    def from_config(cls, config: CatalogConfig) -> "SheetsCatalog":
        if not config.sheet_id:
            raise ValueError("SHEET_ID must be set for CATALOG_BACKEND=sheets")
        creds = Credentials.from_service_account_file(
            config.google_credentials_path, scopes=SCOPES
        )
        client = gspread.authorize(creds)
        worksheet = client.open_by_key(config.sheet_id).worksheet(config.sheet_worksheet)
        logger.info("Connected to Google Sheet %s/%s", config.sheet_id, config.sheet_worksheet)
        return cls(worksheet)

    def _read_rows(self) -> list[Product]:
        products = []
        for record in self._worksheet.get_all_records():
            if not str(record.get("code", "")).strip():
                continue
            products.append(product_from_mapping(record))
        return products

    async def _list(self) -> list[Product]:
        try:
            return await asyncio.to_thread(self._read_rows)
        except _READ_ERRORS as exc:
            logger.warning("Google Sheets read failed: %s", exc)
            raise CatalogUnavailableError(f"Google Sheets read failed: {exc}") from exc

    async def find_by_code(self, code: str) -> Optional[Product]:
        key = canonical_code(code)
        for product in await self._list():
            if canonical_code(product.code) == key:
                return product
        return None

    async def find_by_code_prefix(self, query: str) -> Optional[Product]:
        return first_prefix_match(await self._list(), query)

    async def list_all(self) -> list[Product]:
        return sort_by_name(await self._list())
