"""Shared pytest fixtures for order-export tests.

Provides reusable fixtures for:
- Details page markup in the layouts Amazon serves (the classic
  ``.shipment`` layout, the ``data-component`` layout, and a page that
  renders the same item twice in alternate markup).
- Orders as they come from the order listing, before reconciliation.
- tmp_project_dir: A temporary directory with a default config.toml for
  CLI testing.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from order_export.config import initialize
from order_export.models import LineItem, Order

# ---------------------------------------------------------------------------
# Details page markup
# ---------------------------------------------------------------------------

# One item, rendered twice: once in the classic yohtmlc markup and once in
# the data-component markup.  Both blocks resolve to the same line item.
DUPLICATE_ITEM_PAGE = """\
<html><body>
<div data-component="shipments">
  <div class="a-box shipment">
    <div class="a-fixed-left-grid-inner">
      <div class="yohtmlc-item">
        <a class="a-link-normal" href="/Hoerev-Set-herenondergoed/dp/B0ABC123DE/ref=ppx_yo_dt_b_asin_title_o00_s00?ie=UTF8&amp;psc=1">
          <div class="yohtmlc-product-title">Hoerev Set van 4 herenondergoed</div>
        </a>
        <span class="a-size-small a-color-price">€22,99</span>
      </div>
    </div>
    <div class="a-fixed-right-grid-inner">
      <div data-component="itemTitle">
        <a class="a-link-normal" href="/dp/B0ABC123DE">Hoerev Set van 4 herenondergoed</a>
      </div>
      <div data-component="unitPrice">
        <span class="a-price a-text-price"><span class="a-offscreen">€22,99</span><span aria-hidden="true">€22,99</span></span>
      </div>
    </div>
  </div>
</div>
</body></html>
"""

# Three item blocks: one priced, one without a price, one for a product
# that is not on the order.
MIXED_PRICES_PAGE = """\
<html><body>
<div data-component="shipments">
  <div class="a-fixed-left-grid-inner">
    <div class="yohtmlc-item">
      <a class="a-link-normal" href="/Brita-filterpatronen/dp/B0AAAAAAAA">Brita filterpatronen 6 stuks</a>
      <span class="a-color-price">€10,00</span>
    </div>
  </div>
  <div class="a-fixed-left-grid-inner">
    <div class="yohtmlc-item">
      <a class="a-link-normal" href="/Ontkalker/dp/B0BBBBBBBB">Ontkalker voor koffiemachine</a>
    </div>
  </div>
  <div class="a-fixed-left-grid-inner">
    <div class="yohtmlc-item">
      <a class="a-link-normal" href="/dp/B0ZZZZZZZZ">Iets heel anders</a>
      <span class="a-color-price">€5,00</span>
    </div>
  </div>
</div>
</body></html>
"""

# A page with no recognizable shipment container.
EMPTY_PAGE = "<html><body><div id='nav'>Uw bestellingen</div></body></html>"


@pytest.fixture
def duplicate_item_page() -> str:
    """Details page rendering a single item twice."""
    return DUPLICATE_ITEM_PAGE


@pytest.fixture
def mixed_prices_page() -> str:
    """Details page with a priced, an unpriced and a foreign item block."""
    return MIXED_PRICES_PAGE


@pytest.fixture
def empty_page() -> str:
    """Page without any shipment container."""
    return EMPTY_PAGE


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture
def single_item_order() -> Order:
    """Order with one item and a total that the item price does not explain."""
    return Order(
        order_id="405-1234567-1234567",
        total="€ 56,81",
        placed_date="13 januari 2024",
        delivery_status="Bezorgd op 15 januari",
        url="https://www.amazon.com.be/gp/your-account/order-details?orderID=405-1234567-1234567",
        items=[
            LineItem(
                title="Hoerev Set van 4 herenondergoed",
                product_id="B0ABC123DE",
                href="https://www.amazon.com.be/dp/B0ABC123DE",
            ),
        ],
    )


@pytest.fixture
def three_item_order() -> Order:
    """Order matching MIXED_PRICES_PAGE, plus an item not on the page."""
    return Order(
        order_id="405-7654321-7654321",
        total="€ 30,00",
        placed_date="2 maart 2024",
        delivery_status="Bezorgd op 4 maart",
        url="https://www.amazon.com.be/gp/your-account/order-details?orderID=405-7654321-7654321",
        items=[
            LineItem(title="Brita filterpatronen 6 stuks", product_id="B0AAAAAAAA"),
            LineItem(title="Ontkalker voor koffiemachine", product_id="B0BBBBBBBB"),
            LineItem(title="Katten speelgoed muis", product_id="B0CCCCCCCC"),
        ],
    )


# ---------------------------------------------------------------------------
# Project directory
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """A temporary project directory with a default config.toml."""
    initialize(tmp_path)
    return tmp_path
