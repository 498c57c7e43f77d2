"""Tests for order_export.reconcile.allocation -- distributing the order total."""

from __future__ import annotations

from decimal import Decimal

import pytest

from order_export.models import LineItem
from order_export.money import MONEY_EPSILON, parse_money
from order_export.reconcile.allocation import allocate, find_inconsistency, line_total


def _items(*prices: str | None, qty: str = "1") -> list[LineItem]:
    return [LineItem(title=f"item {i}", price=p, qty=qty) for i, p in enumerate(prices)]


def _prices(items: list[LineItem]) -> list[Decimal]:
    return [parse_money(item.price) for item in items]


# ---------------------------------------------------------------------------
# allocate
# ---------------------------------------------------------------------------


class TestAllocate:
    """Tests for allocate()."""

    def test_remainder_split_over_unpriced(self):
        result = allocate(_items(None, "10", None), Decimal("30"))
        assert _prices(result) == [Decimal("10"), Decimal("10"), Decimal("10")]

    def test_two_unpriced_items(self):
        result = allocate(_items(None, None), Decimal("31"))
        assert _prices(result) == [Decimal("15.5"), Decimal("15.5")]

    def test_last_item_absorbs_rounding(self):
        result = allocate(_items(None, None, None), Decimal("31"))
        assert [i.price for i in result] == ["10.33", "10.33", "10.34"]
        assert line_total(result) == Decimal("31")

    def test_shares_round_down(self):
        result = allocate(_items(None, "5", None), Decimal("10.01"))
        assert [i.price for i in result] == ["2.50", "5", "2.51"]

    def test_prices_are_plain_decimal_strings(self):
        result = allocate(_items("€22,99"), Decimal("22.99"))
        assert result[0].price == "22.99"

    def test_negative_remainder_is_clamped(self):
        """Priced items above the total leave nothing for the unpriced ones."""
        result = allocate(_items("40", None), Decimal("30"))
        assert _prices(result) == [Decimal("40"), Decimal("0")]

    def test_share_is_divided_by_quantity(self):
        result = allocate(_items(None, qty="2"), Decimal("30"))
        assert parse_money(result[0].price) == Decimal("15")
        assert line_total(result) == Decimal("30")

    def test_unit_price_is_rounded_to_cents(self):
        """A share that does not divide by the quantity still gives a cent price."""
        result = allocate(_items(None, qty="3"), Decimal("10"))
        assert result[0].price == "3.33"
        assert abs(line_total(result) - Decimal("10")) <= MONEY_EPSILON

    def test_rounded_lines_feed_the_last_share(self):
        """The last unpriced item takes what the rounded earlier lines leave."""
        items = [
            LineItem(title="a", qty="3"),
            LineItem(title="b", qty="1"),
        ]
        result = allocate(items, Decimal("20"))
        assert [i.price for i in result] == ["3.33", "10.01"]
        assert line_total(result) == Decimal("20")

    def test_fully_priced_items_keep_their_prices(self):
        result = allocate(_items("10.00", "20.00"), Decimal("30"))
        assert [i.price for i in result] == ["10.00", "20.00"]

    def test_idempotent(self):
        once = allocate(_items(None, "€ 7,50", None), Decimal("20"))
        twice = allocate(once, Decimal("20"))
        assert twice == once

    def test_order_and_other_fields_preserved(self):
        items = [
            LineItem(title="a", product_id="B0AAAAAAAA", href="https://x/dp/B0AAAAAAAA"),
            LineItem(title="b", price="5"),
        ]
        result = allocate(items, Decimal("8"))
        assert [i.title for i in result] == ["a", "b"]
        assert result[0].product_id == "B0AAAAAAAA"
        assert result[0].href == "https://x/dp/B0AAAAAAAA"

    def test_inputs_are_not_mutated(self):
        items = _items(None, "5")
        allocate(items, Decimal("10"))
        assert items[0].price is None
        assert items[1].price == "5"

    def test_empty(self):
        assert allocate([], Decimal("10")) == []

    @pytest.mark.parametrize("total", ["0.01", "1", "9.99", "31", "100.03", "1234.56"])
    @pytest.mark.parametrize("unpriced", [1, 2, 3, 7])
    def test_total_is_reproduced(self, total, unpriced):
        """With at least one unpriced item the line totals match the order total."""
        items = _items("0.50", *([None] * unpriced))
        order_total = Decimal(total) + Decimal("0.50")
        result = allocate(items, order_total)
        assert all(i.has_price for i in result)
        assert abs(line_total(result) - order_total) <= MONEY_EPSILON


# ---------------------------------------------------------------------------
# find_inconsistency
# ---------------------------------------------------------------------------


class TestFindInconsistency:
    """Tests for find_inconsistency()."""

    def test_consistent_fully_priced(self):
        assert find_inconsistency(_items("10", "20"), Decimal("30")) is None

    def test_within_epsilon(self):
        assert find_inconsistency(_items("10", "20"), Decimal("30.01")) is None

    def test_fully_priced_mismatch(self):
        message = find_inconsistency(_items("€22,99"), Decimal("56.81"))
        assert message == "item prices sum to 22.99 but order total is 56.81"

    def test_known_exceeds_total(self):
        message = find_inconsistency(_items("40", None), Decimal("30"))
        assert "exceeding order total 30" in message
        assert "1 unpriced item(s) allocated 0" in message

    def test_remainder_to_allocate_is_fine(self):
        assert find_inconsistency(_items("10", None), Decimal("30")) is None


class TestLineTotal:
    """Tests for line_total()."""

    def test_uses_quantity(self):
        items = [LineItem(title="a", price="2,50", qty="3"), LineItem(title="b")]
        assert line_total(items) == Decimal("7.50")
