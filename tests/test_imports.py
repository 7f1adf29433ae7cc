"""Tests for import chains and module integrity.

Ensures all public modules can be imported without errors and
that re-exports from __init__.py files work correctly.
"""


class TestSchemaImports:
    def test_import_session_schema(self):
        from tonerbot.schemas.session_schema import QuoteState, Session

        session = Session(sender_id="s1")
        assert session.quote_state == QuoteState.IDLE
        assert QuoteState.AWAITING_QUOTE_SELECTION == "awaiting_quote_selection"

    def test_import_message_schema(self):
        from tonerbot.schemas.message_schema import Channel, OutboundAction

        assert OutboundAction(text="hi").document is None
        assert Channel.TWILIO == "twilio"


class TestConversationImports:
    def test_import_conversation_package(self):
        from tonerbot.conversation import (
            ConversationEngine,
            Intent,
            QuoteDialogStateMachine,
            SenderLocks,
            SessionStore,
            classify,
        )
        assert len(QuoteDialogStateMachine.TRANSITIONS) == 6
        assert len(SessionStore()) == 0
        assert len(SenderLocks()) == 0
        assert callable(classify)
        assert Intent.UNKNOWN == "unknown"
        assert ConversationEngine is not None


class TestToolImports:
    def test_import_catalog(self):
        from tonerbot.tools.catalog import DEFAULT_PRODUCTS, build_catalog

        assert len(DEFAULT_PRODUCTS) == 5
        assert callable(build_catalog)

    def test_build_default_catalog(self):
        from tonerbot.config import CatalogConfig
        from tonerbot.tools.catalog import InMemoryCatalog, build_catalog

        assert isinstance(build_catalog(CatalogConfig(backend="memory")), InMemoryCatalog)

    def test_import_backends(self):
        from tonerbot.tools.firestore_catalog import FirestoreCatalog
        from tonerbot.tools.sheets_catalog import SheetsCatalog

        assert FirestoreCatalog is not None
        assert SheetsCatalog is not None


class TestPromptImports:
    def test_menu_lists_commands(self):
        from tonerbot.prompts.messages import MENU_TEXT

        for command in ("*1*", "*2*", "*3*", "*4*", "*quote*"):
            assert command in MENU_TEXT


class TestConfigImport:
    def test_import_config(self):
        from tonerbot.config import settings

        assert settings.business.name is not None
        assert settings.catalog.backend in ("memory", "firestore", "sheets")
        assert settings.sessions.idle_threshold_sec >= 1


class TestWebhookImport:
    def test_module_level_app(self):
        from tonerbot.webhook import app

        paths = {route.path for route in app.routes}
        assert {"/whatsapp", "/meta-webhook", "/quotes/{quote_number}.pdf", "/products/{code}"} <= paths


class TestConsoleDemo:
    def test_console_session_imports(self):
        from console_demo import ConsoleSession

        session = ConsoleSession()
        assert session.engine.sessions.get(session.sender_id) is None
        assert set(ConsoleSession.SCENARIOS) == {"browse", "order", "quote"}

    def test_quote_scenario_issues_a_quote(self, capsys):
        from console_demo import ConsoleSession

        ConsoleSession().run_scenario("quote")
        out = capsys.readouterr().out
        assert "Quotes archived: 1" in out
        assert ".pdf" in out
