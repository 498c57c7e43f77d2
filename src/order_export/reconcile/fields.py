"""Field extraction from a single shipment fragment.

Each field is looked up through its own ordered list of CSS selectors
(newest Amazon layout first) and each may be missing independently.  The
extracted values are kept as display strings; parsing happens later in the
allocation and export stages.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import parse_qs, urljoin, urlsplit

from bs4 import BeautifulSoup, Tag

from order_export.models import DEFAULT_QUANTITY, ShipmentFragment

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.amazon.com.be"

PRICE_SELECTORS = (
    ".yohtmlc-item .a-color-price",
    '[data-component="unitPrice"] .a-text-price .a-offscreen',
    '[data-component="unitPrice"] .a-text-price',
    ".a-price .a-offscreen",
    ".a-color-price",
    ".item-price",
)

ITEM_LINK_SELECTORS = (
    ".yohtmlc-item .a-link-normal",
    '[data-component="itemTitle"] .a-link-normal',
    ".yohtmlc-product-title a",
    "a.a-link-normal[href*='/dp/']",
    "a[href*='/dp/']",
    "a[href*='/gp/product/']",
)

TITLE_SELECTORS = (
    ".yohtmlc-product-title",
    '[data-component="itemTitle"]',
    ".a-truncate-full",
)

QUANTITY_SELECTORS = (
    ".product-image__qty",
    '[data-component="quantity"]',
    ".item-view-qty",
)

# Query parameter some links use to carry the product id.
PRODUCT_ID_QUERY_PARAM = "asin"

# Path segments that name a route rather than a product.
_ROUTE_TOKENS = frozenset({"product", "dp"})

# ASIN-shaped path segments, e.g. "B0ABC123DE".
_ASIN_LIKE_RE = re.compile(r"[A-Z0-9]{10,}")

_ALNUM_RE = re.compile(r"[A-Za-z0-9]+")

# Last-resort positions in the link path: "/<slug>/dp/<id>" puts the id at
# 2, "/gp/product/<id>" at 2 and "/dp/<id>" at 1.
_POSITIONAL_SEGMENTS = (1, 2)


def extract_fields(
    fragment_markup: str,
    base_url: str = DEFAULT_BASE_URL,
    log: logging.Logger | None = None,
) -> ShipmentFragment:
    """Extract price, product id, title and quantity from one fragment.

    Args:
        fragment_markup: Markup of a single shipment fragment.
        base_url: Origin used to resolve relative item links.
        log: Logger to report misses through; defaults to this module's
            logger.

    Returns:
        A :class:`ShipmentFragment`.  Missing fields are ``None``, except the
        quantity which falls back to ``DEFAULT_QUANTITY``.
    """
    log = log or logger
    root = BeautifulSoup(fragment_markup, "html.parser")

    price = _first_text(root, PRICE_SELECTORS)
    if price is None:
        log.debug("No price element found in fragment")

    link = _item_link(root)
    href = None
    product_id = None
    link_text = None
    if link is None:
        log.debug("No item link found in fragment")
    else:
        href = urljoin(base_url, link.get("href", "").strip())
        product_id = extract_product_id(href, base_url)
        if product_id is None:
            log.debug("No product id found in item link %s", href)
        link_text = _text(link)

    title = link_text or _first_text(root, TITLE_SELECTORS)
    if title is None:
        log.debug("No title found in fragment")

    quantity = _first_text(root, QUANTITY_SELECTORS) or DEFAULT_QUANTITY

    return ShipmentFragment(
        raw=fragment_markup,
        price=price,
        product_id=product_id,
        title=title,
        quantity=quantity,
        href=href,
    )


def extract_product_id(href: str | None, base_url: str = DEFAULT_BASE_URL) -> str | None:
    """Extract a product identifier (ASIN) from an item link.

    Candidates are tried in order: the ``asin`` query parameter, the path
    segment after ``dp``, any ASIN-shaped path segment, then fixed path
    positions.  The first candidate that is non-empty, not a route token
    (``product``/``dp``) and alphanumeric is returned.

    Returns:
        The identifier, or ``None`` if the link does not carry one.
    """
    if not href:
        return None

    parts = urlsplit(urljoin(base_url, href.strip()))
    segments = [s for s in parts.path.split("/") if s]
    query = {k.lower(): v for k, v in parse_qs(parts.query).items()}

    candidates: list[str] = list(query.get(PRODUCT_ID_QUERY_PARAM, []))
    if "dp" in segments:
        idx = segments.index("dp")
        if idx + 1 < len(segments):
            candidates.append(segments[idx + 1])
    candidates.extend(s for s in segments if _ASIN_LIKE_RE.fullmatch(s))
    candidates.extend(segments[i] for i in _POSITIONAL_SEGMENTS if i < len(segments))

    for candidate in candidates:
        candidate = candidate.strip()
        if candidate and candidate not in _ROUTE_TOKENS and _ALNUM_RE.fullmatch(candidate):
            return candidate
    return None


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _text(element: Tag) -> str | None:
    """Whitespace-collapsed text of *element*, or ``None`` if empty."""
    text = " ".join(element.get_text(" ").split())
    return text or None


def _first_text(root: Tag, selectors: tuple[str, ...]) -> str | None:
    """Text of the first selector match with non-empty text."""
    for selector in selectors:
        for element in root.select(selector):
            text = _text(element)
            if text:
                return text
    return None


def _item_link(root: Tag) -> Tag | None:
    """First item link carrying an ``href``."""
    for selector in ITEM_LINK_SELECTORS:
        for element in root.select(selector):
            if element.get("href"):
                return element
    return None
