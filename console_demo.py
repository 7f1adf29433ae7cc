"""
Offline console demo: chats with the real conversation engine in the terminal.

Uses the in-memory catalog, session store and quote archive. No Twilio, no
Meta, no Google credentials, no network calls. Designed for live demo
walkthroughs.

Usage:
    python console_demo.py
    python console_demo.py --scenario order
    python console_demo.py --scenario quote
"""

import argparse
import asyncio

from tonerbot.config import settings
from tonerbot.conversation.engine import ConversationEngine
from tonerbot.schemas.message_schema import OutboundAction
from tonerbot.tools.catalog import InMemoryCatalog

BLUE = "\033[94m"
GREEN = "\033[92m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

CONSOLE_SENDER = "console:+26770000000"


class ConsoleSession:
    """Simulates one sender's WhatsApp conversation in the terminal."""

    def __init__(self, sender_id: str = CONSOLE_SENDER) -> None:
        self.sender_id = sender_id
        self.engine = ConversationEngine(catalog=InMemoryCatalog())

    def bot_say(self, action: OutboundAction) -> None:
        print(f"{GREEN}{BOLD}[{settings.business.name}]{RESET} {GREEN}{action.text}{RESET}")
        if action.document is not None:
            size = len(self.engine.archive.get_artifact_bytes(action.document.quote_number) or b"")
            self.system_log(f"Document: {action.document.filename} ({size} bytes)")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _log_session(self) -> None:
        session = self.engine.sessions.get(self.sender_id)
        if session is not None:
            self.system_log(
                f"Quote state: {session.quote_state.value} | cart: {session.cart or '[]'}"
            )

    # Pre-scripted scenarios for --scenario flag
    SCENARIOS: dict[str, list[str]] = {
        "browse": ["hello", "1", "hp85a", "tn", "2"],
        "order": ["hi", "1", "HP85A", "HP83X", "2", "3", "2"],
        "quote": ["start", "quote", "lots please", "1", "1x2, 3x1, 9x9", "Thabo Mosweu"],
    }

    MAX_INPUT_LENGTH = 500

    def send(self, text: str) -> None:
        action = asyncio.run(self.engine.handle_message(self.sender_id, text))
        self.bot_say(action)
        self._log_session()

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {settings.business.name.upper()} WHATSAPP BOT - {title}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._banner(f"Scenario: {scenario}")
        for step in steps:
            print(f"\n{BLUE}[Customer] {RESET}{step}")
            self.send(step)

        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        print(f"{DIM}  Quotes archived: {len(self.engine.archive)}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def run(self) -> None:
        self._banner("Console Demo")
        print(f"{BOLD}  Type 'quit' to exit{RESET}")

        while True:
            user_input = input(f"\n{BLUE}[Customer] {RESET}").strip()
            if not user_input:
                continue
            if user_input.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                return
            if len(user_input) > self.MAX_INPUT_LENGTH:
                self.system_log("Message too long, ignored.")
                continue
            self.send(user_input)


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()
