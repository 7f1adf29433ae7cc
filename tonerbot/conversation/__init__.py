from tonerbot.conversation.engine import ConversationEngine
from tonerbot.conversation.intents import Intent, classify
from tonerbot.conversation.locks import SenderLocks
from tonerbot.conversation.session_store import SessionStore
from tonerbot.conversation.state_machine import (
    InvalidTransitionError,
    QuoteDialogStateMachine,
    QuoteTrigger,
)

__all__ = [
    "ConversationEngine",
    "Intent",
    "classify",
    "SenderLocks",
    "SessionStore",
    "QuoteDialogStateMachine",
    "QuoteTrigger",
    "InvalidTransitionError",
]
