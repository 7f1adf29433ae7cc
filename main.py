"""
RailToner WhatsApp bot entry point.

Serves the messaging webhook with uvicorn, or runs the offline console
demo for development.

Usage:
    Webhook server: python main.py
    Console mode:   python main.py console
"""

import logging
import sys

from tonerbot.config import settings

logger = logging.getLogger(__name__)


def _run_server() -> None:
    """Start the webhook server on the configured port."""
    import uvicorn

    logger.info("Server is running on port %d", settings.port)
    uvicorn.run(
        "tonerbot.webhook:app",
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


def _run_console_mode() -> None:
    """Start the offline console demo (no credentials required)."""
    from console_demo import ConsoleSession

    session = ConsoleSession()
    session.run()


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "console":
        _run_console_mode()
    else:
        _run_server()
