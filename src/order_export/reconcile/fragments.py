"""Shipment fragment extraction.

Splits the markup of an order details page into independent shipment
fragments, one per purchased item block.  Amazon serves several layouts for
the same page, so shipment containers are located through an ordered list
of selectors; only the first selector that finds anything is used, which
keeps one extraction strategy per page.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# Shipment containers, most specific layout first.
SHIPMENT_SELECTORS = (
    '[data-component="shipments"]',
    ".shipment",
    '[data-component="purchasedItems"]',
)

# Per-item rows nested inside a shipment container.
CHILD_SHIPMENT_SELECTOR = ".a-fixed-left-grid-inner, .a-fixed-right-grid-inner"


def extract_fragments(
    page_markup: str | None,
    log: logging.Logger | None = None,
) -> list[str]:
    """Split *page_markup* into shipment fragment markup strings.

    For the first selector in ``SHIPMENT_SELECTORS`` with at least one
    match, each match contributes one fragment per nested child row, or
    itself when it has no child rows.  Identical fragments (e.g. a child row
    reached through two nested containers) are emitted once.

    Never raises: a parse failure is logged and yields an empty list.

    Args:
        page_markup: Full HTML of the order details page.
        log: Logger to report through; defaults to this module's logger.

    Returns:
        Inner markup of each fragment, in document order.
    """
    log = log or logger
    if not page_markup:
        return []

    try:
        soup = BeautifulSoup(page_markup, "html.parser")

        containers = []
        for selector in SHIPMENT_SELECTORS:
            containers = soup.select(selector)
            if containers:
                log.debug("Shipment selector %r matched %d block(s)", selector, len(containers))
                break
        else:
            log.debug("No shipment container found in page markup")
            return []

        fragments: list[str] = []
        seen: set[str] = set()
        for container in containers:
            blocks = container.select(CHILD_SHIPMENT_SELECTOR) or [container]
            for block in blocks:
                text = block.decode_contents().strip()
                if not text or text in seen:
                    continue
                seen.add(text)
                fragments.append(text)
        return fragments

    except Exception as exc:
        log.error(
            "Failed to extract shipment fragments: %s (page starts with %r)",
            exc,
            page_markup[:200],
        )
        return []
