"""Money and quantity parsing.

Amazon renders prices in the page locale (``"€ 1.234,56"`` on amazon.com.be,
``"$1,234.56"`` on amazon.com).  All amounts are parsed into
:class:`~decimal.Decimal` so allocation arithmetic stays exact.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from order_export.models import DEFAULT_QUANTITY

# Maximum difference between the allocated item sum and the order total
# that still counts as reconciled.
MONEY_EPSILON = Decimal("0.01")

CENT = Decimal("0.01")

# Whole amounts grouped by periods only, e.g. "1.234" or "1.234.567".
_THOUSANDS_ONLY_RE = re.compile(r"-?\d{1,3}(?:\.\d{3})+")


def parse_money(text: str | None) -> Decimal:
    """Parse a display money string into a Decimal.

    Everything except digits, ``,``, ``.`` and ``-`` is stripped.  A comma
    is the decimal separator when present; if both separators occur, the
    right-most one is the decimal separator and the other groups thousands.
    Periods alone followed by groups of exactly three digits are thousands
    separators, so a price with three decimals cannot be expressed.

    Examples::

        parse_money("€ 56,81")     -> Decimal("56.81")
        parse_money("€ 1.234,56")  -> Decimal("1234.56")
        parse_money("$1,234.56")   -> Decimal("1234.56")
        parse_money("€ 1.234")     -> Decimal("1234")
        parse_money("gratis")      -> Decimal("0")

    Returns ``Decimal("0")`` for empty or non-numeric input.
    """
    if not text:
        return Decimal("0")
    cleaned = re.sub(r"[^\d,.\-]", "", text)
    if "," in cleaned and "." in cleaned:
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif _THOUSANDS_ONLY_RE.fullmatch(cleaned):
        cleaned = cleaned.replace(".", "")
    elif "," in cleaned:
        # Several commas can only be thousands grouping with a decimal
        # comma last, e.g. "1,234,56" is not a real price; keep the last.
        head, _, tail = cleaned.rpartition(",")
        cleaned = head.replace(",", "") + "." + tail
    if not re.search(r"\d", cleaned):
        return Decimal("0")
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return Decimal("0")


def parse_quantity(text: str | None) -> int:
    """Parse a quantity badge such as ``"2"`` or ``"Aantal: 3"``.

    Missing, non-numeric and zero quantities fall back to
    ``DEFAULT_QUANTITY``.
    """
    digits = re.sub(r"\D", "", text or "")
    if digits and int(digits) > 0:
        return int(digits)
    return int(DEFAULT_QUANTITY)


def format_money(value: Decimal) -> str:
    """Render *value* as a plain fixed-point string, e.g. ``"22.99"``."""
    return format(value, "f")
