"""Tests for the quote sub-dialog state machine."""

import pytest

from tonerbot.conversation.state_machine import (
    InvalidTransitionError,
    QuoteDialogStateMachine,
    QuoteTrigger,
)
from tonerbot.schemas.session_schema import QuoteState, Session


def _awaiting_session() -> Session:
    session = Session(sender_id="s1")
    session.quote_state = QuoteState.AWAITING_QUOTE_SELECTION
    return session


class TestInitialState:
    def test_new_session_is_idle(self):
        assert Session(sender_id="s1").quote_state == QuoteState.IDLE

    def test_idle_only_accepts_quote_request(self, quote_dialog):
        assert quote_dialog.get_valid_triggers(QuoteState.IDLE) == [QuoteTrigger.QUOTE_REQUESTED]


class TestEnteringDialog:
    def test_quote_request_moves_to_awaiting(self, quote_dialog):
        session = Session(sender_id="s1")
        new = quote_dialog.transition(session, QuoteTrigger.QUOTE_REQUESTED)
        assert new == QuoteState.AWAITING_QUOTE_SELECTION
        assert session.quote_state == QuoteState.AWAITING_QUOTE_SELECTION

    def test_quote_request_while_awaiting_stays(self, quote_dialog):
        session = _awaiting_session()
        new = quote_dialog.transition(session, QuoteTrigger.QUOTE_REQUESTED)
        assert new == QuoteState.AWAITING_QUOTE_SELECTION


class TestSoftFailures:
    @pytest.mark.parametrize(
        "trigger",
        [QuoteTrigger.SELECTION_ACCEPTED, QuoteTrigger.SELECTION_UNREADABLE, QuoteTrigger.RENDER_FAILED],
    )
    def test_failures_keep_awaiting(self, quote_dialog, trigger):
        session = _awaiting_session()
        assert quote_dialog.transition(session, trigger) == QuoteState.AWAITING_QUOTE_SELECTION


class TestCompletion:
    def test_issued_returns_to_idle(self, quote_dialog):
        session = _awaiting_session()
        assert quote_dialog.transition(session, QuoteTrigger.QUOTE_ISSUED) == QuoteState.IDLE


class TestInvalidTransitions:
    @pytest.mark.parametrize(
        "trigger",
        [
            QuoteTrigger.QUOTE_ISSUED,
            QuoteTrigger.SELECTION_ACCEPTED,
            QuoteTrigger.SELECTION_UNREADABLE,
            QuoteTrigger.RENDER_FAILED,
        ],
    )
    def test_idle_rejects_dialog_triggers(self, quote_dialog, trigger):
        session = Session(sender_id="s1")
        with pytest.raises(InvalidTransitionError, match="idle"):
            quote_dialog.transition(session, trigger)
        assert session.quote_state == QuoteState.IDLE

    def test_every_transition_has_distinct_key(self, quote_dialog):
        keys = [(t.from_state, t.trigger) for t in quote_dialog.TRANSITIONS]
        assert len(keys) == len(set(keys))
