"""Reconciliation of order details pages with order listings.

The order listing gives each order's total and its line items, but no
item prices.  The order details page shows prices per shipment, in one of
several layouts.  This package turns the details page markup into priced
line items whose totals add up to the order total.

Stages, in the order the engine runs them:

- :mod:`~order_export.reconcile.fragments` -- split the page into shipment
  fragments.
- :mod:`~order_export.reconcile.fields` -- pull price, product id, title
  and quantity out of each fragment.
- :mod:`~order_export.reconcile.matching` -- place fragments on line items
  and merge duplicates.
- :mod:`~order_export.reconcile.allocation` -- distribute the unexplained
  remainder of the total over unpriced items.
"""

from __future__ import annotations

from order_export.reconcile.allocation import allocate, find_inconsistency, line_total
from order_export.reconcile.engine import (
    MissingOrderTotalError,
    OrderReconciliation,
    ReconciliationError,
    reconcile_order,
    reconcile_orders,
)
from order_export.reconcile.fields import extract_fields, extract_product_id
from order_export.reconcile.fragments import extract_fragments
from order_export.reconcile.matching import deduplicate, match_fragment

__all__ = [
    "MissingOrderTotalError",
    "OrderReconciliation",
    "ReconciliationError",
    "allocate",
    "deduplicate",
    "extract_fields",
    "extract_fragments",
    "extract_product_id",
    "find_inconsistency",
    "line_total",
    "match_fragment",
    "reconcile_order",
    "reconcile_orders",
]
