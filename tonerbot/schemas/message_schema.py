"""Inbound and outbound message envelopes."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class Channel(str, Enum):
    TWILIO = "twilio"
    META = "meta"
    CONSOLE = "console"


class InboundMessage(BaseModel):
    """A single free-text reply received from a sender."""
    sender_id: str
    body: str
    channel: Channel = Channel.TWILIO


class DocumentReference(BaseModel):
    """Where a generated document can be fetched by the messaging provider."""
    quote_number: str
    url: str
    filename: str
    caption: str


class OutboundAction(BaseModel):
    """What to send back for one inbound message."""
    text: str
    document: Optional[DocumentReference] = None
