"""Fragment-to-item matching and deduplication.

A fragment is placed on a line item by product id when both sides have
one, and otherwise by title containment.  Product ids are exposed
inconsistently across page variants, which is why the title fallback
exists; titles are truncated differently on the listing and the details
page, which is why it is containment and not equality.

Several fragments may resolve to the same line item (the same item block
rendered twice in alternate markup).  :func:`deduplicate` merges those
into one record per item.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from order_export.models import (
    LineItem,
    Matched,
    MatchResult,
    ShipmentFragment,
    Unmatched,
)


def match_fragment(fragment: ShipmentFragment, items: list[LineItem]) -> MatchResult:
    """Find the line item described by *fragment*.

    Precedence:

    1. Product id equality (trimmed, case-sensitive) when both the fragment
       and the item carry one.
    2. The fragment title is a substring of the item title.

    Args:
        fragment: Extracted fragment fields.
        items: The order's current line items.

    Returns:
        :class:`Matched` with the first qualifying item, or
        :class:`Unmatched` whose reason names the attempted id and title.
    """
    product_id = (fragment.product_id or "").strip()
    if product_id:
        for item in items:
            if item.product_id.strip() == product_id:
                return Matched(item=item, fragment=fragment)

    title = (fragment.title or "").strip()
    if title:
        for item in items:
            if title in item.title:
                return Matched(item=item, fragment=fragment)

    return Unmatched(
        fragment=fragment,
        reason=f"no line item for product id {product_id or '-'!r} / title {title or '-'!r}",
    )


def deduplicate(matches: Iterable[Matched], items: list[LineItem]) -> list[LineItem]:
    """Merge matches into one record per line item.

    Matches are keyed by the line item's title and product id, so variants
    sharing a title (sizes, colours) stay separate.  The first match for a key
    creates the record (fragment price, item quantity or else the fragment
    quantity).  Later matches only fill a price that is still missing or a
    quantity that is still empty; a resolved price is never cleared.

    The result follows the order of *items*: a matched item is replaced by
    its merged record (once per key), an unmatched item is kept as-is.  With
    no matches at all the original items are returned unchanged, so items
    are never lost -- only prices can be.

    Args:
        matches: Matched fragments, in page order.
        items: The order's line items before reconciliation.

    Returns:
        The reconciled (not yet allocated) line items.
    """
    merged: dict[tuple[str, str], LineItem] = {}

    for match in matches:
        key = _item_key(match.item)
        price = (match.fragment.price or "").strip() or None
        record = merged.get(key)

        if record is None:
            merged[key] = replace(
                match.item,
                price=price or match.item.price,
                qty=match.item.qty.strip() or match.fragment.quantity,
            )
            continue

        if not record.has_price and price:
            record.price = price
        if not record.qty.strip() and match.fragment.quantity:
            record.qty = match.fragment.quantity

    if not merged:
        return list(items)

    result: list[LineItem] = []
    emitted: set[tuple[str, str]] = set()
    for item in items:
        key = _item_key(item)
        if key not in merged:
            result.append(item)
        elif key not in emitted:
            result.append(merged[key])
            emitted.add(key)
    return result


def _item_key(item: LineItem) -> tuple[str, str]:
    return item.title, item.product_id.strip()
