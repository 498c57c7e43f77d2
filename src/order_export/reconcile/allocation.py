"""Price allocation across line items.

Amazon's details page shows a price for most items but not all.  The order
total is authoritative, so whatever the priced items do not explain is
spread over the unpriced ones such that::

    sum(price * qty for item in items) == order_total

All prices are whole cents.  The last unpriced item absorbs the rounding
remainder, which makes the total exact when that item has quantity 1; with
a larger quantity its unit price can only get within half a cent per unit.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal

from order_export.models import LineItem
from order_export.money import (
    CENT,
    MONEY_EPSILON,
    format_money,
    parse_money,
    parse_quantity,
)


def allocate(items: list[LineItem], order_total: Decimal) -> list[LineItem]:
    """Give every item a price so the line totals add up to *order_total*.

    1. Items with a price keep its value.
    2. ``remaining = max(0, order_total - known)`` where ``known`` is the
       sum of ``price * qty`` over priced items.  A negative residual is
       clamped; it means the extracted prices are wrong, not that an item
       is worth less than nothing.
    3. Each unpriced item but the last gets ``remaining / n`` (rounded down
       to the cent) as its line amount, divided by the item quantity and
       rounded to the cent for its unit price.  The last item's unit price
       is whatever the rounded lines before it leave over, divided by its
       quantity.

    Input order is preserved.  Allocating an already fully priced list
    changes nothing but the price formatting, so a second pass is a no-op.

    Args:
        items: Reconciled line items, some possibly without a price.
        order_total: Parsed order total.

    Returns:
        New :class:`LineItem` objects, each with a plain decimal price
        string.
    """
    unpriced = [item for item in items if not item.has_price]
    remaining = max(Decimal("0"), order_total - line_total(items))
    unit_prices = iter(
        _split_evenly(remaining, [parse_quantity(item.qty) for item in unpriced])
    )

    allocated: list[LineItem] = []
    for item in items:
        price = parse_money(item.price) if item.has_price else next(unit_prices)
        allocated.append(replace(item, price=format_money(price)))
    return allocated


def find_inconsistency(items: list[LineItem], order_total: Decimal) -> str | None:
    """Describe why *items* cannot be reconciled with *order_total*, if so.

    Two situations are reported:

    - every item is priced but the prices do not add up to the total;
    - the priced items already exceed the total, so the unpriced items
      will be allocated nothing.

    Returns:
        A human-readable description, or ``None`` when the allocation will
        reproduce the total.
    """
    known = line_total(items)
    unpriced = sum(1 for item in items if not item.has_price)

    if unpriced == 0:
        if abs(known - order_total) > MONEY_EPSILON:
            return (
                f"item prices sum to {format_money(known)} "
                f"but order total is {format_money(order_total)}"
            )
        return None

    if known - order_total > MONEY_EPSILON:
        return (
            f"item prices sum to {format_money(known)}, exceeding order total "
            f"{format_money(order_total)}; {unpriced} unpriced item(s) allocated 0"
        )
    return None


def line_total(items: list[LineItem]) -> Decimal:
    """Sum of ``price * qty`` over the items that have a price."""
    return sum(
        (parse_money(item.price) * parse_quantity(item.qty) for item in items if item.has_price),
        Decimal("0"),
    )


def _split_evenly(amount: Decimal, quantities: list[int]) -> list[Decimal]:
    """Split *amount* into cent unit prices, one per line quantity.

    Every line but the last gets an equal share rounded down to the cent;
    the last line gets what the rounded lines leave over.
    """
    if not quantities:
        return []
    share = (amount / len(quantities)).quantize(CENT, rounding=ROUND_DOWN)

    prices: list[Decimal] = []
    spent = Decimal("0")
    for qty in quantities[:-1]:
        unit = _to_cent(share / qty)
        prices.append(unit)
        spent += unit * qty
    prices.append(_to_cent(max(Decimal("0"), amount - spent) / quantities[-1]))
    return prices


def _to_cent(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
