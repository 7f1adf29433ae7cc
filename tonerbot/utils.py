"""Shared utilities used across the bot."""

import re
from decimal import Decimal

from tonerbot.config import settings

WHATSAPP_PREFIX = "whatsapp:"


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    A Twilio channel prefix such as ``whatsapp:`` is dropped first.

    Examples:
        >>> normalize_phone("whatsapp:+267 71 234 567")
        '+26771234567'
        >>> normalize_phone("(071) 234-567")
        '071234567'
    """
    value = value.strip()
    if value.lower().startswith(WHATSAPP_PREFIX):
        value = value[len(WHATSAPP_PREFIX):].strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def format_price(amount: Decimal) -> str:
    """Render an amount in the shop currency, e.g. ``P450.00``."""
    return f"{settings.business.currency_symbol}{amount:.2f}"
