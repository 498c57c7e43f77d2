"""Locale-specific date normalization.

Amazon's Dutch-language pages render dates as ``"13 januari 2024"`` and,
on some layouts, ``"september 22, 2024"``.  Both are normalized to ISO
``YYYY-MM-DD``.  Parsing is best-effort: anything unrecognized is returned
unchanged rather than rejected.
"""

from __future__ import annotations

import re
from datetime import date

MONTHS = {
    "januari": 1,
    "februari": 2,
    "maart": 3,
    "april": 4,
    "mei": 5,
    "juni": 6,
    "juli": 7,
    "augustus": 8,
    "september": 9,
    "oktober": 10,
    "november": 11,
    "december": 12,
}

_MONTH_FIRST_RE = re.compile(r"(\w+)\s+(\d{1,2}),\s+(\d{4})")


def missing_date_placeholder() -> str:
    """Date used when the source has no date at all: today, as ISO.

    This is a placeholder, not a real value -- a missing order date shows
    up as the export date.
    """
    return date.today().isoformat()


def month_number(name: str) -> int | None:
    """Look up a Dutch month name (case-insensitive)."""
    return MONTHS.get(name.strip().lower())


def normalize_date(text: str | None) -> str:
    """Normalize a Dutch date string to ``YYYY-MM-DD``.

    Supported shapes are ``"<day> <month> <year>"`` and
    ``"<month> <day>, <year>"``.  Unknown month names, other formats and
    impossible dates return the stripped input unchanged.  ``None`` or a
    blank string returns :func:`missing_date_placeholder`.
    """
    if not text or not text.strip():
        return missing_date_placeholder()

    text = text.strip()

    parts = text.split()
    if len(parts) == 3 and parts[0].isdigit() and parts[2].isdigit():
        iso = _to_iso(parts[2], parts[1], parts[0])
        if iso:
            return iso

    match = _MONTH_FIRST_RE.search(text)
    if match:
        month_name, day_str, year_str = match.groups()
        iso = _to_iso(year_str, month_name, day_str)
        if iso:
            return iso

    return text


def _to_iso(year_str: str, month_name: str, day_str: str) -> str | None:
    mon = month_number(month_name)
    if mon is None:
        return None
    try:
        return date(int(year_str), mon, int(day_str)).isoformat()
    except ValueError:
        return None
