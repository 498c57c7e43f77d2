"""Delivery status classification.

Maps the free-text (Dutch) delivery and return status strings shown on the
order listing to a :class:`~order_export.models.DeliveryStatus` category and,
when the text ends in ``"<day> <month>"``, a normalized delivery date.

The keyword groups are a closed, known-incomplete list.  Anything that
matches no group is classified as ``UNKNOWN`` and logged so new phrasings
can be added.
"""

from __future__ import annotations

import logging
import re
from datetime import date

from order_export.dates import normalize_date
from order_export.models import DeliveryInfo, DeliveryStatus

logger = logging.getLogger(__name__)

# Ordered: the first group with a keyword contained in the status text wins.
KEYWORD_GROUPS: tuple[tuple[DeliveryStatus, tuple[str, ...]], ...] = (
    (DeliveryStatus.DELIVERED, ("bezorgd op", "geleverd op")),
    (DeliveryStatus.RETURNED, ("retourzending voltooid", "retour verwerkt")),
    (
        DeliveryStatus.PROCESSING_REFUND,
        ("terugbetaling wordt verwerkt", "terugbetaling in behandeling"),
    ),
    (DeliveryStatus.UNDELIVERABLE, ("onbezorgbaar", "niet leverbaar")),
    (DeliveryStatus.EXPECTED, ("werd verwacht op", "verwacht op")),
    (
        DeliveryStatus.POSSIBLY_LOST,
        ("je pakket is mogelijk zoekgeraakt", "pakket mogelijk zoekgeraakt"),
    ),
    (DeliveryStatus.REFUNDED, ("gerestitueerd", "terugbetaald")),
)

_TRAILING_DAY_MONTH_RE = re.compile(r"(\d{1,2}) (\w+)$")


def classify_status(
    primary: str | None,
    secondary: str | None,
    *,
    year: int | None = None,
) -> DeliveryInfo:
    """Classify a pair of status strings into a delivery category.

    Args:
        primary: First status source, usually the item's return-policy /
            item-status text.
        secondary: Second status source, usually the order's delivery
            status line.
        year: Year assumed for a trailing ``"<day> <month>"`` date, since
            the listing omits it.  Defaults to the current year.

    Returns:
        A :class:`DeliveryInfo`.  ``status`` is ``UNKNOWN`` when no keyword
        group matched; the unmatched text is logged.
    """
    parts = [p.strip().lower() for p in (primary, secondary) if p and p.strip()]
    if not parts:
        return DeliveryInfo(status=DeliveryStatus.UNKNOWN)

    text = " ".join(parts)
    delivery_date = _trailing_date(text, year)

    for status, keywords in KEYWORD_GROUPS:
        if any(keyword in text for keyword in keywords):
            return DeliveryInfo(status=status, date=delivery_date)

    logger.info("Unknown delivery status: %r", text)
    return DeliveryInfo(status=DeliveryStatus.UNKNOWN, date=delivery_date)


def _trailing_date(text: str, year: int | None) -> str | None:
    """Extract and normalize a trailing ``"<day> <month>"`` from *text*."""
    match = _TRAILING_DAY_MONTH_RE.search(text)
    if not match:
        return None
    if year is None:
        year = date.today().year
    candidate = f"{match.group(1)} {match.group(2)} {year}"
    iso = normalize_date(candidate)
    # normalize_date hands back its input when the month is not recognized.
    return None if iso == candidate else iso
