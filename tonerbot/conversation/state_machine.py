"""
Finite state machine for the quote sub-dialog.

The state lives on each sender's Session (``Session.quote_state``), so one
machine instance serves every sender. Every change of quote state goes
through ``transition`` and must match an entry in ``TRANSITIONS``.
Cart commands never change quote state and are not modelled here.

Usage:
    sm = QuoteDialogStateMachine()
    sm.transition(session, QuoteTrigger.QUOTE_REQUESTED)
    assert session.quote_state == QuoteState.AWAITING_QUOTE_SELECTION
"""

import logging
from dataclasses import dataclass
from enum import Enum

from tonerbot.schemas.session_schema import QuoteState, Session

logger = logging.getLogger(__name__)


class QuoteTrigger(str, Enum):
    """Events that move a sender through the quote sub-dialog."""
    QUOTE_REQUESTED = "quote_requested"
    SELECTION_ACCEPTED = "selection_accepted"
    SELECTION_UNREADABLE = "selection_unreadable"
    RENDER_FAILED = "render_failed"
    QUOTE_ISSUED = "quote_issued"


@dataclass(frozen=True)
class Transition:
    """A single valid state transition."""
    from_state: QuoteState
    to_state: QuoteState
    trigger: QuoteTrigger


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


class QuoteDialogStateMachine:
    """Deterministic transitions for ``Session.quote_state``."""

    TRANSITIONS: list[Transition] = [
        # --- Entering the dialog ---
        Transition(QuoteState.IDLE, QuoteState.AWAITING_QUOTE_SELECTION,
                   QuoteTrigger.QUOTE_REQUESTED),
        # Re-sending "quote" mid-dialog restarts it (or retries a failed render)
        Transition(QuoteState.AWAITING_QUOTE_SELECTION, QuoteState.AWAITING_QUOTE_SELECTION,
                   QuoteTrigger.QUOTE_REQUESTED),

        # --- Selection read, waiting for the customer name ---
        Transition(QuoteState.AWAITING_QUOTE_SELECTION, QuoteState.AWAITING_QUOTE_SELECTION,
                   QuoteTrigger.SELECTION_ACCEPTED),

        # --- Soft failures keep the sender in the dialog ---
        Transition(QuoteState.AWAITING_QUOTE_SELECTION, QuoteState.AWAITING_QUOTE_SELECTION,
                   QuoteTrigger.SELECTION_UNREADABLE),
        Transition(QuoteState.AWAITING_QUOTE_SELECTION, QuoteState.AWAITING_QUOTE_SELECTION,
                   QuoteTrigger.RENDER_FAILED),

        # --- Completion ---
        Transition(QuoteState.AWAITING_QUOTE_SELECTION, QuoteState.IDLE,
                   QuoteTrigger.QUOTE_ISSUED),
    ]

    def get_valid_triggers(self, state: QuoteState) -> list[QuoteTrigger]:
        """Return all triggers valid from ``state``."""
        return [t.trigger for t in self.TRANSITIONS if t.from_state == state]

    def transition(self, session: Session, trigger: QuoteTrigger) -> QuoteState:
        """
        Apply ``trigger`` to the session's quote state.

        Returns:
            The new quote state.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == session.quote_state and t.trigger == trigger:
                old_state = session.quote_state
                session.quote_state = t.to_state
                logger.debug(
                    "Quote state for %s: %s -> %s (trigger: %s)",
                    session.sender_id, old_state.value, t.to_state.value, trigger.value,
                )
                return session.quote_state

        valid = [t.value for t in self.get_valid_triggers(session.quote_state)]
        raise InvalidTransitionError(
            f"No valid transition from '{session.quote_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )
