"""
Keyword intent classification for inbound text.

Keywords always win, whatever the sender's quote state: typing ``1`` while a
quote selection is pending browses the catalog instead of being parsed as a
selection. Only non-keyword text is routed by state.
"""

from enum import Enum

from tonerbot.schemas.session_schema import QuoteState


class Intent(str, Enum):
    """Classified meaning of one inbound message."""
    GREETING = "greeting"
    BROWSE_CATALOG = "browse_catalog"
    VIEW_CART = "view_cart"
    PLACE_ORDER = "place_order"
    REQUEST_HUMAN = "request_human"
    START_QUOTE = "start_quote"
    QUOTE_SELECTION_INPUT = "quote_selection_input"
    PRODUCT_CODE_CANDIDATE = "product_code_candidate"
    UNKNOWN = "unknown"


KEYWORDS: dict[str, Intent] = {
    "hello": Intent.GREETING,
    "hi": Intent.GREETING,
    "start": Intent.GREETING,
    "1": Intent.BROWSE_CATALOG,
    "2": Intent.VIEW_CART,
    "3": Intent.PLACE_ORDER,
    "4": Intent.REQUEST_HUMAN,
    "quote": Intent.START_QUOTE,
}


def normalize_keyword(raw_text: str) -> str:
    """Trimmed, lower-cased form used only for keyword comparison."""
    return raw_text.strip().lower()


def classify(quote_state: QuoteState, raw_text: str) -> Intent:
    """Map a sender's raw text to an Intent given their quote state."""
    keyword = normalize_keyword(raw_text)
    if keyword in KEYWORDS:
        return KEYWORDS[keyword]
    if not keyword:
        return Intent.UNKNOWN
    if quote_state == QuoteState.AWAITING_QUOTE_SELECTION:
        return Intent.QUOTE_SELECTION_INPUT
    return Intent.PRODUCT_CODE_CANDIDATE
