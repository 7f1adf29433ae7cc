"""
Firestore-backed catalog.

Products live in one collection (``products`` by default), one document
per product with the upper-cased product code as the document id.
The Firestore SDK is synchronous, so every read runs in a worker thread.
"""

import asyncio
import logging
from typing import Any, Optional

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core.exceptions import GoogleAPIError

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

_READ_ERRORS = (GoogleAPIError, ValueError, ArithmeticError)


def _initialize_app(credentials_path: str) -> None:
    """Initialize the default Firebase app once per process."""
    if firebase_admin._apps:
        logger.debug("Firebase already initialized, skipping")
        return
    if not credentials_path:
        raise ValueError("FIREBASE_CREDENTIALS_PATH must be set for CATALOG_BACKEND=firestore")
    firebase_admin.initialize_app(credentials.Certificate(credentials_path))
    logger.info("Firebase initialized from %s", credentials_path)


class FirestoreCatalog(CatalogStore):
    """Catalog reading a Firestore collection."""

    def __init__(self, client: Any, collection: str = "products") -> None:
        self._client = client
        self._collection = collection

    @classmethod
    def from_config(cls, config: CatalogConfig) -> "FirestoreCatalog":
        _initialize_app(config.firebase_credentials_path)
        return cls(firestore.client(), config.firestore_collection)

    def _get_document(self, code: str) -> Optional[Product]:
        snapshot = self._client.collection(self._collection).document(code).get()
        if not snapshot.exists:
            return None
        return product_from_mapping(snapshot.to_dict() or {}, code=snapshot.id)

    def _stream_all(self) -> list[Product]:
        return [
            product_from_mapping(doc.to_dict() or {}, code=doc.id)
            for doc in self._client.collection(self._collection).stream()
        ]

    async def find_by_code(self, code: str) -> Optional[Product]:
        key = canonical_code(code)
        if not key:
            return None
        try:
            return await asyncio.to_thread(self._get_document, key)
        except _READ_ERRORS as exc:
            logger.warning("Firestore lookup failed for %s: %s", key, exc)
            raise CatalogUnavailableError(f"Firestore lookup failed: {exc}") from exc

    async def find_by_code_prefix(self, query: str) -> Optional[Product]:
        return first_prefix_match(await self._list(), query)

    async def list_all(self) -> list[Product]:
        return sort_by_name(await self._list())

    async def _list(self) -> list[Product]:
        try:
            return await asyncio.to_thread(self._stream_all)
        except _READ_ERRORS as exc:
            logger.warning("Firestore listing failed: %s", exc)
            raise CatalogUnavailableError(f"Firestore listing failed: {exc}") from exc
