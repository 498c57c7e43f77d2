"""Export row building.

Turns reconciled orders into one bookkeeping row per line item: the order
date normalized to ISO, a description prefixed with the delivery status
category, the line amount, currency, quantity and the order identifiers.

Writing the rows to a file is left to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from order_export.dates import normalize_date
from order_export.models import DeliveryStatus, Order
from order_export.money import CENT, format_money, parse_money, parse_quantity
from order_export.status import classify_status

# Fixed column order for :meth:`ExportRow.as_dict`.
EXPORT_COLUMNS = [
    "date",
    "description",
    "amount",
    "currency",
    "quantity",
    "order_id",
    "order_total",
]


@dataclass
class ExportRow:
    """One bookkeeping row for a single line item.

    Attributes:
        date: Order placed date as ``YYYY-MM-DD`` (or the raw text when it
            could not be parsed).
        description: ``"<Status> <title> [<order url>] - <order id>"``.
        status: Delivery status category of the item.
        amount: Line amount (``price * qty`` rounded to the cent, capped at the
            order total), or ``None`` when the item has no price.
        currency: ISO currency code.
        quantity: Parsed quantity.
        order_id: Vendor order number.
        order_total: Parsed order total.
    """

    date: str
    description: str
    status: DeliveryStatus
    amount: Decimal | None
    currency: str
    quantity: int
    order_id: str
    order_total: Decimal

    def as_dict(self) -> dict[str, str]:
        """Render the row as strings keyed by ``EXPORT_COLUMNS``."""
        return {
            "date": self.date,
            "description": self.description,
            "amount": "" if self.amount is None else format_money(self.amount),
            "currency": self.currency,
            "quantity": str(self.quantity),
            "order_id": self.order_id,
            "order_total": format_money(self.order_total),
        }


def build_export_rows(
    orders: list[Order],
    currency: str = "EUR",
    year: int | None = None,
) -> list[ExportRow]:
    """Build one :class:`ExportRow` per line item of *orders*.

    Args:
        orders: Reconciled orders.
        currency: ISO currency code for every row.
        year: Year assumed for delivery dates in status text; defaults to
            the current year.

    Returns:
        Rows in order, then item, sequence.
    """
    rows: list[ExportRow] = []

    for order in orders:
        order_total = parse_money(order.total)
        order_date = normalize_date(order.placed_date)

        for item in order.items:
            info = classify_status(item.return_policy, order.delivery_status, year=year)
            qty = parse_quantity(item.qty)

            amount = None
            if item.has_price:
                amount = (parse_money(item.price) * qty).quantize(CENT, rounding=ROUND_HALF_UP)
                if order.total:
                    amount = min(amount, order_total)

            rows.append(
                ExportRow(
                    date=order_date,
                    description=f"{info.status.value} {item.title} [{order.url}] - {order.order_id}",
                    status=info.status,
                    amount=amount,
                    currency=currency,
                    quantity=qty,
                    order_id=order.order_id,
                    order_total=order_total,
                )
            )

    return rows
