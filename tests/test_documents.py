"""Tests for quote PDF rendering and the quote archive."""

from datetime import datetime, timezone

import pytest

from tonerbot.errors import RenderError
from tonerbot.tools.documents import QuoteArchive, quote_filename, render_quote_pdf
from tonerbot.tools.quotes import build_quote_artifact, compile_quote

from tests.conftest import make_product


@pytest.fixture
def artifact():
    snapshot = [make_product("A1", "Alpha", "100"), make_product("B1", "Beta", "25.50")]
    return build_quote_artifact(
        "whatsapp:+26771234567",
        compile_quote("1x2, 2x3", snapshot),
        datetime(2025, 3, 15, 10, 0, tzinfo=timezone.utc),
        quote_number="QT-TEST-00000001",
    )


class TestRenderQuotePdf:
    def test_produces_pdf(self, artifact):
        data = render_quote_pdf(artifact)
        assert data.startswith(b"%PDF")

    def test_rendering_is_deterministic(self, artifact):
        assert render_quote_pdf(artifact) == render_quote_pdf(artifact)

    def test_long_quote_spans_pages(self):
        snapshot = [make_product(f"P{i:03d}", f"Product {i}") for i in range(1, 81)]
        text = " ".join(f"{i}x1" for i in range(1, 81))
        long_artifact = build_quote_artifact("s1", compile_quote(text, snapshot), quote_number="QT-LONG")
        assert render_quote_pdf(long_artifact).startswith(b"%PDF")

    def test_filename(self):
        assert quote_filename("QT-1-AB") == "QT-1-AB.pdf"

    def test_layout_failure_is_render_error(self, artifact, monkeypatch):
        from reportlab.pdfgen import canvas

        def broken_save(self):
            raise OSError("disk full")

        monkeypatch.setattr(canvas.Canvas, "save", broken_save)
        with pytest.raises(RenderError, match="QT-TEST-00000001"):
            render_quote_pdf(artifact)


class TestQuoteArchive:
    def test_store_and_get(self):
        archive = QuoteArchive()
        archive.store("QT-1", b"%PDF-1")
        assert archive.get_artifact_bytes("QT-1") == b"%PDF-1"
        assert archive.get_artifact_bytes("QT-2") is None

    def test_oldest_evicted_beyond_capacity(self):
        archive = QuoteArchive(max_entries=2)
        archive.store("QT-1", b"1")
        archive.store("QT-2", b"2")
        archive.store("QT-3", b"3")
        assert len(archive) == 2
        assert archive.get_artifact_bytes("QT-1") is None
        assert archive.get_artifact_bytes("QT-3") == b"3"
