"""
test_row_parser.py — Unit tests for RowParser and its lenient number parsing.

Tests cover:
  - Column alias resolution (priority order, blank values skipped)
  - Derived total cost = quantity × unit rate when total is missing or zero
  - Row rejection: empty code, empty description, non-positive total
  - Lenient numbers: thousands separators, unit suffixes, garbage → 0

All tests are pure unit tests; no database or external services required.
"""

import math
import pytest

from boq_pareto.services.row_parser import RowParser, parse_number, resolve_field


@pytest.fixture(scope="module")
def parser():
    return RowParser()


class TestAliasResolution:

    def test_first_alias_wins(self):
        row = {"Item Code": "1.1", "code": "9.9"}
        assert resolve_field(row, "item_code") == "1.1"

    def test_blank_alias_falls_through(self):
        """'Item Code' is blank, so the next present alias ('Code') is used."""
        row = {"Item Code": "  ", "Code": "2.3"}
        assert resolve_field(row, "item_code") == "2.3"

    def test_nan_treated_as_missing(self):
        row = {"Quantity": float("nan"), "qty": "4"}
        assert resolve_field(row, "quantity") == "4"

    def test_camel_case_headers(self, parser):
        item = parser.parse({
            "itemCode": "3", "description": "Roofing", "quantity": 2, "unitRate": 50, "totalCost": 100,
        })
        assert item.item_code == "3"
        assert item.total_cost == 100.0


class TestDerivedTotal:

    def test_total_derived_when_missing(self, parser):
        """1 × 1000 = 1000."""
        item = parser.parse({"Code": "1", "Description": "Sitework", "Qty": "1", "Rate": "1000"})
        assert item.total_cost == pytest.approx(1000.0)

    def test_total_derived_when_zero(self, parser):
        """Explicit total 0 is replaced by 12.5 × 8 = 100."""
        item = parser.parse({"Code": "1", "Description": "Paint", "Qty": "12.5", "Rate": "8", "Total": "0"})
        assert item.total_cost == pytest.approx(100.0)

    def test_explicit_total_kept(self, parser):
        item = parser.parse({"Code": "1", "Description": "Lump sum", "Qty": "1", "Rate": "10", "Total": "250"})
        assert item.total_cost == pytest.approx(250.0)

    def test_fields_trimmed_and_unit_optional(self, parser):
        item = parser.parse({"Item Code": " 1.2 ", "Description": " Rebar ", "Total Cost": 10})
        assert item.item_code == "1.2"
        assert item.description == "Rebar"
        assert item.unit is None
        assert item.quantity == 0.0

    def test_integer_float_code_normalized(self, parser):
        """A numeric cell 3.0 becomes the code '3'."""
        item = parser.parse({"Code": 3.0, "Description": "Doors", "Total": 40})
        assert item.item_code == "3"


class TestRejection:

    @pytest.mark.parametrize("row", [
        {"Code": "", "Description": "No code", "Total": 10},
        {"Code": "1", "Description": "", "Total": 10},
        {"Code": "1", "Description": "Zero", "Qty": 0, "Rate": 100},
        {"Code": "1", "Description": "Negative", "Total": -50},
        {"Description": "Missing code column", "Total": 10},
    ])
    def test_rejected_rows(self, parser, row):
        assert parser.parse(row) is None

    def test_negative_quantity_clamped(self, parser):
        """Quantity -5 becomes 0, so the derived total 0 × 10 rejects the row."""
        assert parser.parse({"Code": "1", "Description": "x", "Qty": -5, "Rate": 10}) is None
        item = parser.parse({"Code": "1", "Description": "x", "Qty": -5, "Rate": 10, "Total": 30})
        assert item.quantity == 0.0
        assert item.total_cost == 30.0

    def test_parse_all_counts_rejects(self, parser):
        rows = [
            {"Code": "1", "Description": "A", "Total": 5},
            {"Code": "", "Description": "B", "Total": 5},
            {"Code": "2", "Description": "C", "Total": 0},
        ]
        items, rejected = parser.parse_all(rows)
        assert [it.item_code for it in items] == ["1"]
        assert rejected == 2


class TestParseNumber:

    @pytest.mark.parametrize("value, expected", [
        ("1,250.50", 1250.5),
        ("12.5 m3", 12.5),
        ("  42 ", 42.0),
        ("1e3", 1000.0),
        (".5", 0.5),
        (7, 7.0),
        ("abc", 0.0),
        ("", 0.0),
        (None, 0.0),
        (True, 0.0),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
    ])
    def test_values(self, value, expected):
        result = parse_number(value)
        assert not math.isnan(result)
        assert result == pytest.approx(expected)
