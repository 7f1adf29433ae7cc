"""
Out-of-band delivery of replies and quote documents.

Used when the webhook does not answer inline with TwiML. A failed send is
logged and reported as ``False``; it never raises into the request task,
and the sender's session has already been committed by the time a send is
attempted.
"""

import asyncio
from typing import Any, Optional

import httpx
from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from tonerbot.config import DeliveryConfig
from tonerbot.errors import TransportError
from tonerbot.logging_context import get_sender_logger
from tonerbot.schemas.message_schema import OutboundAction
from tonerbot.utils import WHATSAPP_PREFIX, normalize_phone

logger = get_sender_logger(__name__)

GRAPH_API_BASE = "https://graph.facebook.com"


class Transport:
    """Send a text or a document link to one sender."""

    async def send_text(self, sender_id: str, text: str) -> bool:
        raise NotImplementedError

    async def send_document(self, sender_id: str, document_url: str, caption: str) -> bool:
        raise NotImplementedError


class TwilioTransport(Transport):
    """Push messages through the Twilio REST API (WhatsApp sender)."""

    def __init__(self, client: Any, from_number: str) -> None:
        self._client = client
        self._from = self._whatsapp_address(from_number)

    @classmethod
    def from_config(cls, config: DeliveryConfig) -> "TwilioTransport":
        if not (config.twilio_account_sid and config.twilio_auth_token and config.twilio_from_number):
            raise ValueError(
                "TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_FROM_NUMBER "
                "must be set for DELIVERY_MODE=twilio"
            )
        return cls(Client(config.twilio_account_sid, config.twilio_auth_token),
                   config.twilio_from_number)

    @staticmethod
    def _whatsapp_address(value: str) -> str:
        if value.lower().startswith(WHATSAPP_PREFIX):
            return value
        return f"{WHATSAPP_PREFIX}{normalize_phone(value)}"

    async def _create(self, sender_id: str, **kwargs: Any) -> bool:
        try:
            message = await asyncio.to_thread(
                self._client.messages.create,
                from_=self._from,
                to=self._whatsapp_address(sender_id),
                **kwargs,
            )
        except TwilioException as exc:
            logger.error("Twilio send to %s failed: %s", sender_id, exc)
            return False
        logger.debug("Twilio message queued: %s", getattr(message, "sid", "?"))
        return True

    async def send_text(self, sender_id: str, text: str) -> bool:
        return await self._create(sender_id, body=text)

    async def send_document(self, sender_id: str, document_url: str, caption: str) -> bool:
        return await self._create(sender_id, body=caption, media_url=[document_url])


class MetaCloudTransport(Transport):
    """Push messages through the WhatsApp Cloud API."""

    def __init__(
        self,
        access_token: str,
        phone_number_id: str,
        graph_version: str = "v19.0",
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._url = f"{GRAPH_API_BASE}/{graph_version}/{phone_number_id}/messages"
        self._headers = {"Authorization": f"Bearer {access_token}"}
        self._timeout = timeout
        self._client = client

    @classmethod
    def from_config(cls, config: DeliveryConfig) -> "MetaCloudTransport":
        if not (config.meta_access_token and config.meta_phone_number_id):
            raise ValueError(
                "META_ACCESS_TOKEN and META_PHONE_NUMBER_ID must be set for DELIVERY_MODE=meta"
            )
        return cls(
            access_token=config.meta_access_token,
            phone_number_id=config.meta_phone_number_id,
            graph_version=config.meta_graph_version,
            timeout=config.timeout_sec,
        )

    async def _post(self, payload: dict[str, Any]) -> None:
        if self._client is not None:
            response = await self._client.post(self._url, json=payload, headers=self._headers)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._url, json=payload, headers=self._headers)
        if response.status_code >= 400:
            raise TransportError(f"Graph API returned {response.status_code}: {response.text[:200]}")

    async def _send(self, sender_id: str, payload: dict[str, Any]) -> bool:
        body = {
            "messaging_product": "whatsapp",
            "to": normalize_phone(sender_id).lstrip("+"),
            **payload,
        }
        try:
            await self._post(body)
        except (TransportError, httpx.HTTPError) as exc:
            logger.error("WhatsApp Cloud API send to %s failed: %s", sender_id, exc)
            return False
        return True

    async def send_text(self, sender_id: str, text: str) -> bool:
        return await self._send(sender_id, {"type": "text", "text": {"body": text}})

    async def send_document(self, sender_id: str, document_url: str, caption: str) -> bool:
        filename = document_url.rstrip("/").rsplit("/", 1)[-1]
        return await self._send(sender_id, {
            "type": "document",
            "document": {"link": document_url, "caption": caption, "filename": filename},
        })


def build_transport(config: DeliveryConfig) -> Optional[Transport]:
    """Create the push transport for ``DELIVERY_MODE``; None means inline TwiML."""
    if config.mode == "twilio":
        return TwilioTransport.from_config(config)
    if config.mode == "meta":
        return MetaCloudTransport.from_config(config)
    return None


async def deliver(transport: Transport, sender_id: str, action: OutboundAction) -> bool:
    """Send an action's text, then its document if any. True if everything went out."""
    sent = await transport.send_text(sender_id, action.text)
    if action.document is not None:
        doc = action.document
        sent = await transport.send_document(sender_id, doc.url, doc.caption) and sent
    if not sent:
        logger.warning("Reply to %s was not fully delivered", sender_id)
    return sent
