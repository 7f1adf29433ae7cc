"""
Conversation engine: one inbound message in, one outbound action out.

Each message is handled under its sender's lock. The handler works on a
copy of the stored session and the copy is saved only when the turn
completes, so a turn that blows up half way leaves the previous state in
place. The caller delivers the returned action after this commit.

Usage:
    engine = ConversationEngine(catalog=InMemoryCatalog())
    action = await engine.handle_message("whatsapp:+26771234567", "1")
    print(action.text)
"""

import asyncio
import dataclasses
from datetime import datetime, timezone
from decimal import Decimal
from typing import Awaitable, Callable, Optional

from tonerbot.config import settings
from tonerbot.conversation.intents import Intent, classify
from tonerbot.conversation.locks import SenderLocks
from tonerbot.conversation.session_store import SessionStore
from tonerbot.conversation.state_machine import QuoteDialogStateMachine, QuoteTrigger
from tonerbot.errors import CatalogUnavailableError
from tonerbot.logging_context import get_sender_logger, set_sender_id
from tonerbot.prompts import messages
from tonerbot.schemas.catalog_schema import Product
from tonerbot.schemas.message_schema import DocumentReference, OutboundAction
from tonerbot.schemas.session_schema import QuoteState, Session
from tonerbot.tools.catalog import CatalogStore
from tonerbot.tools.documents import QuoteArchive, quote_filename, render_quote_pdf
from tonerbot.tools.quotes import build_quote_artifact, compile_quote

logger = get_sender_logger(__name__)

Handler = Callable[[Session, str], Awaitable[OutboundAction]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _working_copy(session: Session) -> Session:
    return dataclasses.replace(
        session,
        cart=list(session.cart),
        quote_items=list(session.quote_items),
        catalog_snapshot=list(session.catalog_snapshot),
    )


class ConversationEngine:
    """Session-scoped state machine driving catalog, cart and quote commands."""

    def __init__(
        self,
        catalog: CatalogStore,
        sessions: Optional[SessionStore] = None,
        locks: Optional[SenderLocks] = None,
        archive: Optional[QuoteArchive] = None,
        public_base_url: Optional[str] = None,
        renderer: Callable[..., bytes] = render_quote_pdf,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.catalog = catalog
        self.sessions = sessions if sessions is not None else SessionStore()
        self.locks = locks if locks is not None else SenderLocks()
        self.archive = archive if archive is not None else QuoteArchive()
        self._base_url = (public_base_url or settings.delivery.public_base_url).rstrip("/")
        self._renderer = renderer
        self._clock = clock
        self._quote_dialog = QuoteDialogStateMachine()
        self._handlers: dict[Intent, Handler] = {
            Intent.GREETING: self._greet,
            Intent.BROWSE_CATALOG: self._browse_catalog,
            Intent.VIEW_CART: self._view_cart,
            Intent.PLACE_ORDER: self._place_order,
            Intent.REQUEST_HUMAN: self._request_human,
            Intent.START_QUOTE: self._start_quote,
            Intent.QUOTE_SELECTION_INPUT: self._quote_selection,
            Intent.PRODUCT_CODE_CANDIDATE: self._product_code,
            Intent.UNKNOWN: self._fallback,
        }

    def document_url(self, quote_number: str) -> str:
        return f"{self._base_url}/quotes/{quote_filename(quote_number)}"

    # ------------------------------------------------------------------ #
    # Entry point
    # ------------------------------------------------------------------ #

    async def handle_message(self, sender_id: str, raw_text: str) -> OutboundAction:
        """Process one inbound message and return what to send back.

        Never raises: catalog outages and unexpected errors degrade to the
        generic apology so the sender always gets a reply.
        """
        set_sender_id(sender_id)
        async with self.locks.hold(sender_id):
            now = self._clock()
            stored = self.sessions.get_or_create(sender_id, now)
            session = _working_copy(stored)
            intent = classify(session.quote_state, raw_text)
            logger.info(
                "Message from %s classified as %s (quote state: %s)",
                sender_id, intent.value, session.quote_state.value,
            )
            try:
                action = await self._handlers[intent](session, raw_text)
            except CatalogUnavailableError as exc:
                logger.warning("Catalog unavailable while handling %s: %s", intent.value, exc)
                session = stored
                action = OutboundAction(text=messages.APOLOGY_TEXT)
            except Exception:
                logger.exception("Unhandled error while handling %s", intent.value)
                session = stored
                action = OutboundAction(text=messages.APOLOGY_TEXT)
            session.touch(now)
            self.sessions.save(session)
        return action

    # ------------------------------------------------------------------ #
    # Static replies
    # ------------------------------------------------------------------ #

    async def _greet(self, session: Session, raw_text: str) -> OutboundAction:
        return OutboundAction(text=messages.MENU_TEXT)

    async def _request_human(self, session: Session, raw_text: str) -> OutboundAction:
        logger.info("Human handoff requested by %s", session.sender_id)
        return OutboundAction(text=messages.HANDOFF_TEXT)

    async def _fallback(self, session: Session, raw_text: str) -> OutboundAction:
        return OutboundAction(text=messages.FALLBACK_TEXT)

    # ------------------------------------------------------------------ #
    # Catalog and cart
    # ------------------------------------------------------------------ #

    async def _browse_catalog(self, session: Session, raw_text: str) -> OutboundAction:
        products = await self.catalog.list_all()
        return OutboundAction(text=messages.build_catalog_text(products))

    async def _resolve_cart(self, cart: list[str]) -> tuple[list[Product], Decimal]:
        """Look up every cart code; codes no longer in the catalog are skipped."""
        found = await asyncio.gather(*(self.catalog.find_by_code(code) for code in cart))
        products = []
        for code, product in zip(cart, found):
            if product is None:
                logger.info("Cart code %s no longer in catalog, skipping", code)
                continue
            products.append(product)
        total = sum((p.unit_price for p in products), Decimal("0"))
        return products, total

    async def _view_cart(self, session: Session, raw_text: str) -> OutboundAction:
        if not session.cart:
            return OutboundAction(text=messages.EMPTY_CART_TEXT)
        products, total = await self._resolve_cart(session.cart)
        if not products:
            return OutboundAction(text=messages.EMPTY_CART_TEXT)
        return OutboundAction(text=messages.build_cart_text(products, total))

    async def _place_order(self, session: Session, raw_text: str) -> OutboundAction:
        if not session.cart:
            return OutboundAction(text=messages.ORDER_REJECTED_TEXT)
        products, total = await self._resolve_cart(session.cart)
        session.cart.clear()
        if not products:
            # Only stale codes were left; nothing to confirm
            return OutboundAction(text=messages.ORDER_REJECTED_TEXT)
        logger.info("Order placed by %s: %d item(s), total %s",
                    session.sender_id, len(products), total)
        return OutboundAction(text=messages.build_order_confirmation_text(products, total))

    async def _product_code(self, session: Session, raw_text: str) -> OutboundAction:
        candidate = raw_text.strip()
        product = await self.catalog.find_by_code(candidate)
        if product is None:
            product = await self.catalog.find_by_code_prefix(candidate)
        if product is None:
            return OutboundAction(text=messages.FALLBACK_TEXT)
        session.cart.append(product.code)
        logger.info("Added %s to cart of %s (%d item(s))",
                    product.code, session.sender_id, len(session.cart))
        return OutboundAction(text=messages.build_added_to_cart_text(product))

    # ------------------------------------------------------------------ #
    # Quote sub-dialog
    # ------------------------------------------------------------------ #

    async def _start_quote(self, session: Session, raw_text: str) -> OutboundAction:
        if (session.quote_state == QuoteState.AWAITING_QUOTE_SELECTION
                and session.quote_items and session.customer_name):
            logger.info("Retrying quote render for %s", session.sender_id)
            self._quote_dialog.transition(session, QuoteTrigger.QUOTE_REQUESTED)
            return await self._issue_quote(session)

        products = await self.catalog.list_all()
        if not products:
            return OutboundAction(text=messages.EMPTY_CATALOG_TEXT)
        self._quote_dialog.transition(session, QuoteTrigger.QUOTE_REQUESTED)
        session.quote_items = []
        session.customer_name = None
        session.catalog_snapshot = products
        return OutboundAction(text=messages.build_quote_catalog_text(products))

    async def _quote_selection(self, session: Session, raw_text: str) -> OutboundAction:
        """Read either the ``NxQ`` selection or, once one is pending, the customer name.

        A message that parses as a selection always replaces the pending one.
        """
        lines = compile_quote(raw_text, session.catalog_snapshot)
        if lines:
            self._quote_dialog.transition(session, QuoteTrigger.SELECTION_ACCEPTED)
            session.quote_items = lines
            session.customer_name = None
            return OutboundAction(text=messages.build_quote_name_prompt_text(lines))

        if session.quote_items and session.customer_name is None:
            session.customer_name = raw_text.strip()
            return await self._issue_quote(session)

        self._quote_dialog.transition(session, QuoteTrigger.SELECTION_UNREADABLE)
        return OutboundAction(text=messages.QUOTE_UNREADABLE_TEXT)

    async def _issue_quote(self, session: Session) -> OutboundAction:
        """Render and archive the pending quote lines, then leave the dialog.

        The pending lines and name are cleared only once the document is
        archived; whatever the renderer raises leaves them for a retry.
        """
        artifact = build_quote_artifact(
            session.customer_name or session.sender_id, session.quote_items, self._clock()
        )
        try:
            data = await asyncio.to_thread(self._renderer, artifact)
        except Exception:
            logger.exception("Quote %s could not be rendered", artifact.quote_number)
            self._quote_dialog.transition(session, QuoteTrigger.RENDER_FAILED)
            return OutboundAction(text=messages.QUOTE_RENDER_FAILED_TEXT)

        self.archive.store(artifact.quote_number, data)
        url = self.document_url(artifact.quote_number)
        self._quote_dialog.transition(session, QuoteTrigger.QUOTE_ISSUED)
        session.quote_items = []
        session.customer_name = None
        session.catalog_snapshot = []
        return OutboundAction(
            text=messages.build_quote_issued_text(artifact, url),
            document=DocumentReference(
                quote_number=artifact.quote_number,
                url=url,
                filename=quote_filename(artifact.quote_number),
                caption=messages.build_document_caption(artifact),
            ),
        )
