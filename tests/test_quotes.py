"""Tests for quote selection parsing and quote numbers."""

import re
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from tonerbot.tools.quotes import (
    build_quote_artifact,
    compile_quote,
    generate_quote_number,
    quote_total,
)

from tests.conftest import make_product

SNAPSHOT = [
    make_product("A1", "Alpha", "100"),
    make_product("B1", "Beta", "200"),
    make_product("C1", "Gamma", "50"),
]


class TestCompileQuote:
    def test_basic_selection(self):
        lines = compile_quote("1x2, 3x1", SNAPSHOT)
        assert [(l.product_code, l.quantity) for l in lines] == [("A1", 2), ("C1", 1)]
        assert lines[0].unit_price_snapshot == Decimal("100")
        assert lines[0].line_total == Decimal("200")

    def test_out_of_range_index_dropped(self):
        assert compile_quote("9x1", SNAPSHOT) == []

    def test_invalid_matches_skipped_valid_kept(self):
        lines = compile_quote("0x5 2x0 2x3 4x1", SNAPSHOT)
        assert [(l.product_code, l.quantity) for l in lines] == [("B1", 3)]

    def test_uppercase_separator(self):
        lines = compile_quote("2X4", SNAPSHOT)
        assert lines[0].quantity == 4

    def test_surrounding_text_ignored(self):
        lines = compile_quote("please send 1x2 and also 2x1 thanks", SNAPSHOT)
        assert len(lines) == 2

    def test_duplicates_are_separate_lines(self):
        lines = compile_quote("1x1 1x2", SNAPSHOT)
        assert [l.quantity for l in lines] == [1, 2]

    def test_no_matches(self):
        assert compile_quote("lots please", SNAPSHOT) == []

    def test_empty_snapshot(self):
        assert compile_quote("1x1", []) == []


class TestQuoteNumbers:
    def test_format(self):
        assert re.fullmatch(r"QT-[0-9A-F]+-[0-9A-F]{8}", generate_quote_number())

    def test_ten_thousand_unique(self):
        numbers = {generate_quote_number() for _ in range(10_000)}
        assert len(numbers) == 10_000

    def test_time_part_strictly_increases(self):
        first = int(generate_quote_number().split("-")[1], 16)
        second = int(generate_quote_number().split("-")[1], 16)
        assert second > first


class TestQuoteArtifact:
    def test_total_is_sum_of_lines(self):
        lines = compile_quote("1x2, 3x1", SNAPSHOT)
        assert quote_total(lines) == Decimal("250")

    def test_artifact_fields(self):
        issued = datetime(2025, 3, 15, tzinfo=timezone.utc)
        lines = compile_quote("2x1", SNAPSHOT)
        artifact = build_quote_artifact("whatsapp:+267", lines, issued, quote_number="QT-1-ABC")
        assert artifact.quote_number == "QT-1-ABC"
        assert artifact.customer_identity == "whatsapp:+267"
        assert artifact.grand_total == Decimal("200")
        assert artifact.issued_at == issued
        assert artifact.lines == tuple(lines)

    def test_artifact_requires_lines(self):
        with pytest.raises(ValueError, match="without lines"):
            build_quote_artifact("s1", [])
