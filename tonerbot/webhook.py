"""
HTTP surface: messaging webhooks, quote downloads and product lookup.

Twilio posts form-encoded ``From``/``Body`` to ``/whatsapp``. With
``DELIVERY_MODE=twiml`` the reply goes back inline as a TwiML envelope;
otherwise the reply is pushed through the configured transport and the
webhook answers a bare ``200 OK``. The WhatsApp Cloud API posts JSON to
``/meta-webhook`` and is always answered through the Cloud API.
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional
from urllib.parse import parse_qs

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse, Response
from twilio.twiml.messaging_response import MessagingResponse

from tonerbot.config import AppConfig, settings
from tonerbot.conversation.engine import ConversationEngine
from tonerbot.conversation.sweeper import run_session_sweeper
from tonerbot.errors import CatalogUnavailableError
from tonerbot.logging_context import set_sender_id
from tonerbot.schemas.message_schema import Channel, InboundMessage, OutboundAction
from tonerbot.tools.catalog import build_catalog
from tonerbot.tools.transport import MetaCloudTransport, Transport, build_transport, deliver

logger = logging.getLogger(__name__)

XML_MEDIA_TYPE = "application/xml"


def build_twiml(action: OutboundAction) -> str:
    """Wrap an action in a TwiML messaging reply, the document as media."""
    resp = MessagingResponse()
    message = resp.message(action.text)
    if action.document is not None:
        message.media(action.document.url)
    return str(resp)


def parse_twilio_form(raw: bytes) -> InboundMessage:
    """Read ``From`` and ``Body`` from a form-encoded Twilio webhook.

    Raises:
        ValueError: If the body is not form data or a field is missing.
    """
    form = parse_qs(raw.decode("utf-8"), keep_blank_values=True)
    sender = (form.get("From", [""])[0] or "").strip()
    if not sender:
        raise ValueError("Missing From")
    if "Body" not in form:
        raise ValueError("Missing Body")
    return InboundMessage(sender_id=sender, body=form["Body"][0], channel=Channel.TWILIO)


def extract_meta_messages(payload: Any) -> list[InboundMessage]:
    """Pull text messages out of a WhatsApp Cloud API webhook payload.

    Status callbacks and non-text messages are ignored.

    Raises:
        ValueError: If the payload does not have the webhook's shape.
    """
    if not isinstance(payload, dict):
        raise ValueError("Payload must be a JSON object")
    inbound = []
    try:
        for entry in payload.get("entry", []):
            for change in entry.get("changes", []):
                for message in change.get("value", {}).get("messages", []):
                    if message.get("type") != "text":
                        continue
                    inbound.append(InboundMessage(
                        sender_id=str(message["from"]),
                        body=str(message["text"]["body"]),
                        channel=Channel.META,
                    ))
    except (AttributeError, KeyError, TypeError) as exc:
        raise ValueError(f"Malformed webhook payload: {exc}") from exc
    return inbound


def _optional_meta_transport(config: AppConfig) -> Optional[MetaCloudTransport]:
    try:
        return MetaCloudTransport.from_config(config.delivery)
    except ValueError:
        return None


def create_app(
    config: AppConfig = settings,
    engine: Optional[ConversationEngine] = None,
    transport: Optional[Transport] = None,
    meta_transport: Optional[Transport] = None,
    start_sweeper: bool = True,
) -> FastAPI:
    """Wire the engine, delivery channel and routes into a FastAPI app."""
    if engine is None:
        engine = ConversationEngine(
            catalog=build_catalog(config.catalog),
            public_base_url=config.delivery.public_base_url,
        )
    if transport is None and config.delivery.mode != "twiml":
        transport = build_transport(config.delivery)
    if meta_transport is None:
        if isinstance(transport, MetaCloudTransport):
            meta_transport = transport
        else:
            meta_transport = _optional_meta_transport(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sweeper = None
        if start_sweeper:
            sweeper = asyncio.create_task(run_session_sweeper(
                engine.sessions,
                engine.locks,
                interval_sec=config.sessions.sweep_interval_sec,
                idle_threshold_sec=config.sessions.idle_threshold_sec,
            ))
        try:
            yield
        finally:
            if sweeper is not None:
                sweeper.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await sweeper

    app = FastAPI(title=f"{config.business.name} WhatsApp Bot", lifespan=lifespan)
    app.state.engine = engine
    app.state.transport = transport

    @app.get("/", include_in_schema=False)
    def health() -> PlainTextResponse:
        return PlainTextResponse(f"🤖 {config.business.name} WhatsApp Bot is running!")

    @app.post("/whatsapp")
    async def twilio_webhook(request: Request) -> Response:
        try:
            inbound = parse_twilio_form(await request.body())
        except (UnicodeDecodeError, ValueError) as exc:
            logger.warning("Rejected Twilio webhook: %s", exc)
            return PlainTextResponse(str(exc), status_code=400)

        set_sender_id(inbound.sender_id)
        logger.info("Received message from %s: %s", inbound.sender_id, inbound.body)
        try:
            action = await engine.handle_message(inbound.sender_id, inbound.body)
            if transport is None:
                return Response(build_twiml(action), media_type=XML_MEDIA_TYPE)
            await deliver(transport, inbound.sender_id, action)
        except Exception:
            logger.exception("Error handling webhook")
            return PlainTextResponse("Error handling webhook.", status_code=500)
        return PlainTextResponse("OK")

    @app.get("/meta-webhook")
    def meta_verify(request: Request) -> PlainTextResponse:
        params = request.query_params
        token = config.delivery.meta_verify_token
        if params.get("hub.mode") == "subscribe" and token and params.get("hub.verify_token") == token:
            return PlainTextResponse(params.get("hub.challenge", ""))
        return PlainTextResponse("Forbidden", status_code=403)

    @app.post("/meta-webhook")
    async def meta_webhook(request: Request) -> PlainTextResponse:
        try:
            inbound = extract_meta_messages(await request.json())
        except ValueError as exc:
            logger.warning("Rejected Cloud API webhook: %s", exc)
            return PlainTextResponse("Malformed webhook payload.", status_code=400)

        for message in inbound:
            set_sender_id(message.sender_id)
            logger.info("Received message from %s: %s", message.sender_id, message.body)
            try:
                action = await engine.handle_message(message.sender_id, message.body)
                if meta_transport is None:
                    logger.error("No WhatsApp Cloud API credentials; reply to %s dropped",
                                 message.sender_id)
                    continue
                await deliver(meta_transport, message.sender_id, action)
            except Exception:
                # The Cloud API redelivers the whole payload on a non-200
                logger.exception("Error handling Cloud API message from %s", message.sender_id)
        return PlainTextResponse("OK")

    @app.get("/quotes/{quote_number}.pdf")
    def download_quote(quote_number: str) -> Response:
        data = engine.archive.get_artifact_bytes(quote_number)
        if data is None:
            raise HTTPException(status_code=404, detail="Quote not found.")
        return Response(
            data,
            media_type="application/pdf",
            headers={"Content-Disposition": f'inline; filename="{quote_number}.pdf"'},
        )

    @app.get("/products/{code}")
    async def get_product(code: str) -> dict:
        try:
            product = await engine.catalog.find_by_code(code)
        except CatalogUnavailableError:
            logger.exception("Error getting product %s", code)
            raise HTTPException(status_code=503, detail="Error retrieving product data.")
        if product is None:
            raise HTTPException(status_code=404, detail="Product not found.")
        return product.model_dump(mode="json")

    return app


app = create_app()
