"""Core data models for Order Export.

This module defines the dataclasses shared by the reconciliation engine,
the status classifier and the export row builder, together with the JSON
conversion helpers for the external order record shape. It has zero
internal imports -- everything depends on it, but it depends on nothing
within the package.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Union

# Quantity assumed when neither the order listing nor the shipment block
# shows one.  Amazon only renders a quantity badge for quantities above 1.
DEFAULT_QUANTITY = "1"


class DeliveryStatus(enum.Enum):
    """Closed set of delivery status categories."""

    DELIVERED = "Delivered"
    RETURNED = "Returned"
    PROCESSING_REFUND = "ProcessingRefund"
    UNDELIVERABLE = "Undeliverable"
    EXPECTED = "Expected"
    POSSIBLY_LOST = "PossiblyLost"
    REFUNDED = "Refunded"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class DeliveryInfo:
    """Result of classifying a free-text delivery status.

    Attributes:
        status: The matched category, or ``DeliveryStatus.UNKNOWN``.
        date: ISO ``YYYY-MM-DD`` delivery date if the status text ended in
            a ``"<day> <month>"`` pattern, else ``None``.
    """

    status: DeliveryStatus
    date: str | None = None

    @property
    def is_known(self) -> bool:
        return self.status is not DeliveryStatus.UNKNOWN


@dataclass
class LineItem:
    """A single purchased item within an order.

    Attributes:
        title: Product title as shown on the order listing.
        return_policy: Return / item status text from the listing (the
            status classifier reads it as the primary status source).
        price: Unit price as a display or decimal string, or ``None``
            until reconciliation resolves it.
        product_id: Vendor catalog key (ASIN), or empty string if unknown.
        href: Link to the product page.
        qty: Quantity as a string, ``"1"`` by default.
    """

    title: str
    return_policy: str = ""
    price: str | None = None
    product_id: str = ""
    href: str = ""
    qty: str = DEFAULT_QUANTITY

    @property
    def has_price(self) -> bool:
        return self.price is not None and self.price.strip() != ""


@dataclass
class Order:
    """A scraped order, enriched in place by the reconciliation engine.

    Attributes:
        order_id: Vendor order number, treated as opaque.
        total: Order total as a display money string (e.g. ``"€ 56,81"``).
            ``None`` when the listing did not expose one.
        placed_date: Order placed date, locale-specific free text.
        delivery_status: Raw delivery status text from the listing.
        delivery_date: Raw delivery date text, if any.
        url: Order details URL.
        items: Line items; replaced by the engine after reconciliation.
    """

    order_id: str
    total: str | None
    placed_date: str = ""
    delivery_status: str = ""
    delivery_date: str = ""
    url: str = ""
    items: list[LineItem] = field(default_factory=list)


@dataclass(frozen=True)
class ShipmentFragment:
    """Fields extracted from one shipment block of an order details page.

    Never holds a parsed DOM; only the raw markup and the four extracted
    fields (plus the item link they came from).

    Attributes:
        raw: The fragment markup the fields were extracted from.
        price: Raw price display string, e.g. ``"€22,99"``.
        product_id: Product identifier taken from the item link.
        title: Item title text.
        quantity: Quantity text; ``DEFAULT_QUANTITY`` when none was shown.
        href: Absolute item link URL.
    """

    raw: str
    price: str | None = None
    product_id: str | None = None
    title: str | None = None
    quantity: str = DEFAULT_QUANTITY
    href: str | None = None


@dataclass(frozen=True)
class Matched:
    """A fragment resolved to one line item of the order."""

    item: LineItem
    fragment: ShipmentFragment


@dataclass(frozen=True)
class Unmatched:
    """A fragment that matched no line item.

    Attributes:
        fragment: The fragment that could not be placed.
        reason: Human-readable reason including the attempted keys.
    """

    fragment: ShipmentFragment
    reason: str


MatchResult = Union[Matched, Unmatched]


@dataclass
class ReconcileResult:
    """Return type of a reconciliation run over many orders.

    Each order is processed independently; the run reports what it could
    not do instead of aborting.

    Attributes:
        orders: All orders, enriched in place where reconciliation
            succeeded.
        warnings: Non-fatal issues such as unmatched fragments or missing
            page markup.
        errors: Per-order failures (the order keeps its original items).
        inconsistencies: Allocation inconsistencies -- known item prices
            that cannot be reconciled with the order total.  Kept apart from
            ``warnings`` because they point at corrupt upstream data.
        failed_order_ids: IDs of orders whose reconciliation failed.
    """

    orders: list[Order] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    inconsistencies: list[str] = field(default_factory=list)
    failed_order_ids: list[str] = field(default_factory=list)


@dataclass
class AppConfig:
    """Top-level application configuration loaded from config.toml.

    Attributes:
        base_url: Origin used to resolve relative item links, e.g.
            ``"https://www.amazon.com.be"``.
        currency: ISO currency code written on export rows.
        capture_enabled: Whether suspicious reconciliations are captured as
            replayable case directories.
        capture_dir: Directory (relative to the project root) for captured
            cases.
    """

    base_url: str = "https://www.amazon.com.be"
    currency: str = "EUR"
    capture_enabled: bool = False
    capture_dir: str = "captured"


# ---------------------------------------------------------------------------
# JSON record conversion
# ---------------------------------------------------------------------------


def line_item_from_dict(data: dict) -> LineItem:
    """Build a :class:`LineItem` from the camelCase JSON record shape."""
    price = data.get("price")
    return LineItem(
        title=data.get("title") or "",
        return_policy=data.get("returnPolicy") or "",
        price=None if price is None else str(price),
        product_id=data.get("productId") or "",
        href=data.get("href") or "",
        qty=str(data.get("qty") or DEFAULT_QUANTITY),
    )


def line_item_to_dict(item: LineItem) -> dict:
    """Render a :class:`LineItem` in the camelCase JSON record shape.

    ``price`` is omitted while unresolved, matching the input records.
    """
    data = {
        "title": item.title,
        "returnPolicy": item.return_policy,
        "productId": item.product_id,
        "href": item.href,
        "qty": item.qty,
    }
    if item.price is not None:
        data["price"] = item.price
    return data


def order_from_dict(data: dict) -> Order:
    """Build an :class:`Order` from the camelCase JSON record shape.

    Raises:
        KeyError: If ``orderId`` is missing.
    """
    return Order(
        order_id=str(data["orderId"]),
        total=data.get("orderTotal"),
        placed_date=data.get("orderPlacedDate") or "",
        delivery_status=data.get("deliveryStatus") or "",
        delivery_date=data.get("deliveryDate") or "",
        url=data.get("url") or "",
        items=[line_item_from_dict(i) for i in data.get("items", [])],
    )


def order_to_dict(order: Order) -> dict:
    """Render an :class:`Order` in the camelCase JSON record shape."""
    return {
        "orderId": order.order_id,
        "orderTotal": order.total,
        "orderPlacedDate": order.placed_date,
        "deliveryStatus": order.delivery_status,
        "deliveryDate": order.delivery_date,
        "url": order.url,
        "items": [line_item_to_dict(i) for i in order.items],
    }
