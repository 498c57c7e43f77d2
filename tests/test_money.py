"""Tests for order_export.money -- locale-aware money and quantity parsing."""

from decimal import Decimal

import pytest

from order_export.money import format_money, parse_money, parse_quantity

# ---------------------------------------------------------------------------
# parse_money
# ---------------------------------------------------------------------------


class TestParseMoney:
    """Tests for parse_money()."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("€ 56,81", Decimal("56.81")),
            ("€22,99", Decimal("22.99")),
            ("€ 1.234,56", Decimal("1234.56")),
            ("$1,234.56", Decimal("1234.56")),
            ("$12.50", Decimal("12.50")),
            ("€ 1.234", Decimal("1234")),
            ("€ 1.234.567", Decimal("1234567")),
            ("EUR 7", Decimal("7")),
            ("-€ 3,00", Decimal("-3.00")),
        ],
    )
    def test_formats(self, text, expected):
        assert parse_money(text) == expected

    @pytest.mark.parametrize("text", [None, "", "gratis", "€", "-"])
    def test_non_numeric_is_zero(self, text):
        assert parse_money(text) == Decimal("0")

    def test_decimal_comma_with_surrounding_text(self):
        assert parse_money("Totaal: € 30,00") == Decimal("30.00")


# ---------------------------------------------------------------------------
# parse_quantity
# ---------------------------------------------------------------------------


class TestParseQuantity:
    """Tests for parse_quantity()."""

    def test_plain_number(self):
        assert parse_quantity("3") == 3

    def test_label(self):
        assert parse_quantity("Aantal: 2") == 2

    @pytest.mark.parametrize("text", [None, "", "  ", "geen", "0"])
    def test_falls_back_to_one(self, text):
        assert parse_quantity(text) == 1


# ---------------------------------------------------------------------------
# format_money
# ---------------------------------------------------------------------------


class TestFormatMoney:
    """Tests for format_money()."""

    def test_plain_decimal(self):
        assert format_money(Decimal("22.99")) == "22.99"

    def test_no_exponent(self):
        assert format_money(Decimal("1E+1")) == "10"

    def test_parse_of_formatted_value_is_stable(self):
        value = Decimal("1234.50")
        assert parse_money(format_money(value)) == value
