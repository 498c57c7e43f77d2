"""Order reconciliation engine.

Composes the reconciliation stages for one order -- extract fragments,
extract fields, match, deduplicate, allocate -- and runs them over a batch
of orders.  Every order is independent: a failing order is reported and
the batch carries on with the next one.

The engine is pure apart from logging.  The logger is a parameter so
callers can route diagnostics wherever they like; there is no
process-wide state.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from order_export.models import LineItem, Matched, Order, ReconcileResult, Unmatched
from order_export.money import parse_money
from order_export.reconcile.allocation import allocate, find_inconsistency
from order_export.reconcile.fields import DEFAULT_BASE_URL, extract_fields
from order_export.reconcile.fragments import extract_fragments
from order_export.reconcile.matching import deduplicate, match_fragment

if TYPE_CHECKING:
    from order_export.capture import CaptureRecorder

logger = logging.getLogger(__name__)


class ReconciliationError(Exception):
    """An order cannot be reconciled at all."""


class MissingOrderTotalError(ReconciliationError):
    """The order has no total to reconcile against."""


@dataclass
class OrderReconciliation:
    """Outcome of reconciling a single order.

    Attributes:
        order: The order, with ``items`` replaced by the allocated items.
        fragment_count: Number of shipment fragments found on the page.
        matched: Line items after matching and deduplication, before
            allocation (prices as found on the page, or ``None``).
        unmatched: Fragments that matched no line item.
        warnings: Non-fatal issues for this order.
        inconsistency: Description of an allocation inconsistency, if any.
    """

    order: Order
    fragment_count: int = 0
    matched: list[LineItem] = field(default_factory=list)
    unmatched: list[Unmatched] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    inconsistency: str | None = None


def reconcile_order(
    order: Order,
    page_markup: str | None,
    *,
    base_url: str = DEFAULT_BASE_URL,
    log: logging.Logger | None = None,
) -> OrderReconciliation:
    """Resolve item prices for *order* from its details page markup.

    The order is updated in place: ``order.items`` is replaced by the
    allocated items, each with a price.  Shipment fragments that fail to
    parse or match are logged and skipped.

    Args:
        order: The order to enrich.
        page_markup: HTML of the order details page, or ``None`` when the
            page is not available (prices are then allocated from the total
            alone).
        base_url: Origin used to resolve relative item links.
        log: Logger to report through; defaults to this module's logger.

    Returns:
        An :class:`OrderReconciliation` describing what happened.

    Raises:
        MissingOrderTotalError: If the order has no total.
    """
    log = log or logger
    order_total = _order_total(order)
    outcome = OrderReconciliation(order=order)
    items = list(order.items)

    if page_markup:
        fragments = extract_fragments(page_markup, log=log)
        outcome.fragment_count = len(fragments)
        if not fragments:
            outcome.warnings.append(
                f"Order {order.order_id}: no shipment blocks found on details page"
            )

        matches: list[Matched] = []
        for raw in fragments:
            try:
                fragment = extract_fields(raw, base_url, log=log)
            except Exception as exc:
                log.warning(
                    "Malformed shipment fragment in order %s: %s\n%s",
                    order.order_id,
                    exc,
                    raw,
                )
                outcome.warnings.append(
                    f"Order {order.order_id}: malformed shipment fragment skipped ({exc})"
                )
                continue

            result = match_fragment(fragment, order.items)
            if isinstance(result, Unmatched):
                log.info("Order %s: %s", order.order_id, result.reason)
                outcome.unmatched.append(result)
                outcome.warnings.append(f"Order {order.order_id}: {result.reason}")
                continue
            matches.append(result)

        if fragments and not matches:
            outcome.warnings.append(
                f"Order {order.order_id}: no shipment block matched an item; "
                "prices allocated from the order total"
            )
        items = deduplicate(matches, order.items)

    outcome.matched = items
    inconsistency = find_inconsistency(items, order_total)
    if inconsistency:
        log.warning("Allocation inconsistency in order %s: %s", order.order_id, inconsistency)
        outcome.inconsistency = inconsistency

    order.items = allocate(items, order_total)
    return outcome


def reconcile_orders(
    orders: list[Order],
    pages: Mapping[str, str],
    *,
    base_url: str = DEFAULT_BASE_URL,
    log: logging.Logger | None = None,
    recorder: CaptureRecorder | None = None,
) -> ReconcileResult:
    """Reconcile a batch of orders against their details pages.

    Orders are processed sequentially and independently.  An order that
    raises is left untouched, reported in ``errors`` and
    ``failed_order_ids``, and the batch continues.

    Args:
        orders: Orders from the order listing.
        pages: Details page markup keyed by order ID.  Orders without an
            entry are still allocated from their total.
        base_url: Origin used to resolve relative item links.
        log: Logger to report through; defaults to this module's logger.
        recorder: Optional :class:`~order_export.capture.CaptureRecorder`
            that saves suspicious reconciliations for replay.

    Returns:
        A :class:`ReconcileResult` with the orders and accumulated issues.
    """
    log = log or logger
    result = ReconcileResult(orders=orders)

    for order in orders:
        markup = pages.get(order.order_id)
        if markup is None:
            result.warnings.append(
                f"Order {order.order_id}: no details page; "
                "prices allocated from the order total"
            )

        before = copy.deepcopy(order) if recorder is not None else None

        try:
            outcome = reconcile_order(order, markup, base_url=base_url, log=log)
        except Exception as exc:
            log.error("Reconciliation failed for order %s: %s", order.order_id, exc)
            result.errors.append(f"Order {order.order_id}: {exc}")
            result.failed_order_ids.append(order.order_id)
            if recorder is not None:
                recorder.record_error(markup or "", before, exc)
            continue

        result.warnings.extend(outcome.warnings)
        if outcome.inconsistency:
            result.inconsistencies.append(f"Order {order.order_id}: {outcome.inconsistency}")
        if recorder is not None and markup:
            recorder.inspect(markup, before, outcome.matched)

    return result


def _order_total(order: Order) -> Decimal:
    if order.total is None or not order.total.strip():
        raise MissingOrderTotalError(f"order {order.order_id} has no order total")
    return parse_money(order.total)
