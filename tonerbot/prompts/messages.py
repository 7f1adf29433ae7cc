"""
Every text the bot sends to a sender.

Business-specific values are injected from configuration, not hardcoded.
WhatsApp renders ``*text*`` as bold, which is the only formatting used.
"""

from decimal import Decimal
from typing import Sequence

from tonerbot.config import settings
from tonerbot.schemas.catalog_schema import Product
from tonerbot.schemas.quote_schema import QuoteArtifact, QuoteLine
from tonerbot.utils import format_price

_biz = settings.business

MENU_TEXT = (
    f"Hello! Welcome to {_biz.name}. 🖨️\n"
    "What would you like to do?\n"
    "*1* - Browse available toners\n"
    "*2* - Check my cart\n"
    "*3* - Place order\n"
    "*4* - Speak to a human\n"
    "*quote* - Generate a PDF quote"
)

FALLBACK_TEXT = "I didn't understand that. Please reply with *1*, *2*, *3*, *4*, or *quote*."

HANDOFF_TEXT = (
    "A customer service representative will contact you shortly. "
    "Thank you for your patience."
)

APOLOGY_TEXT = "Sorry, an error occurred. Please try again later."

EMPTY_CATALOG_TEXT = "Our catalog is empty right now. Please check back later."

EMPTY_CART_TEXT = "Your cart is empty. Reply *1* to browse toners."

ORDER_REJECTED_TEXT = "Your cart is empty. Can't place an order."

QUOTE_UNREADABLE_TEXT = (
    "Sorry, I couldn't understand that selection. "
    "Please use the format *NxQ* (item number x quantity), e.g. *1x2* or *1x2, 3x1*."
)

QUOTE_NAME_PROMPT_TEXT = "Please enter your name for the quote."

QUOTE_RENDER_FAILED_TEXT = (
    "Sorry, we couldn't generate your quote right now. "
    "Your selection is saved; reply *quote* to try again."
)


def _stock_label(product: Product) -> str:
    return "✅ In stock" if product.in_stock else "⏳ Out of stock"


def build_catalog_text(products: Sequence[Product]) -> str:
    """Browse listing: name, code and price per product."""
    if not products:
        return EMPTY_CATALOG_TEXT
    lines = [f"Here are our available toners and prices ({_biz.currency_code}):"]
    for product in products:
        lines.append(f"- {product.name} ({product.code}): {format_price(product.unit_price)}")
    lines.append(
        f"\nReply with the toner code (e.g., '{products[0].code}') to add it to your cart."
    )
    return "\n".join(lines)


def build_added_to_cart_text(product: Product) -> str:
    return (
        f"Added *{product.name}* ({product.code}) to your cart. 🛒\n\n"
        "Reply *2* to view cart or *1* to browse more."
    )


def build_cart_text(products: Sequence[Product], total: Decimal) -> str:
    """Itemized cart with a stock indicator per line."""
    lines = ["Your Cart 🛒:"]
    for product in products:
        lines.append(
            f"- {product.name} ({product.code}): {format_price(product.unit_price)} "
            f"{_stock_label(product)}"
        )
    lines.append(f"Total: {format_price(total)}")
    lines.append("\nReply *3* to place your order.")
    return "\n".join(lines)


def build_order_confirmation_text(products: Sequence[Product], total: Decimal) -> str:
    """Order confirmation with the manual payment instruction."""
    items = ", ".join(product.name for product in products)
    return (
        "ORDER CONFIRMED! ✅\n\n"
        f"Items: {items}\n"
        f"Total Amount Due: {format_price(total)}\n\n"
        f"Please send *{total:.2f} {_biz.currency_code}* via {_biz.payment_methods} "
        f"to {_biz.payment_number}. Include your name as a reference. "
        f"{_biz.delivery_note} Thank you!"
    )


def build_quote_catalog_text(products: Sequence[Product]) -> str:
    """Numbered catalog for the quote dialog; numbers are 1-based."""
    lines = ["Let's build your quote. 📄\n"]
    for index, product in enumerate(products, 1):
        lines.append(f"{index}. {product.name} ({product.code}) - {format_price(product.unit_price)}")
    lines.append(
        "\nReply with item number x quantity, e.g. *1x2, 3x1* "
        "for 2 of item 1 and 1 of item 3."
    )
    return "\n".join(lines)


def build_quote_name_prompt_text(lines: Sequence[QuoteLine]) -> str:
    count = sum(line.quantity for line in lines)
    return f"Got it: {count} item(s) selected. 📝\n{QUOTE_NAME_PROMPT_TEXT}"


def build_quote_issued_text(artifact: QuoteArtifact, document_url: str) -> str:
    return (
        f"Quote *{artifact.quote_number}* for {artifact.customer_identity} is ready. 📄\n"
        f"Items: {len(artifact.lines)}\n"
        f"Total: {format_price(artifact.grand_total)}\n"
        f"Download: {document_url}\n\n"
        "Reply *quote* for another quote or *1* to browse."
    )


def build_document_caption(artifact: QuoteArtifact) -> str:
    return f"Your {_biz.name} quote {artifact.quote_number}"
