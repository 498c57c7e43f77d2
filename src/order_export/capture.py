"""Capture of suspicious reconciliations as replayable cases.

When a reconciliation looks wrong (see :meth:`CaptureRecorder.inspect` for
the checks), the recorder writes the inputs and the result to a case
directory so the page can be reproduced offline and turned into a
regression test.

Each case lives at ``{capture_dir}/{issue}-{order_id}-{timestamp}-{hash}/``
and contains::

    page.html            order details page markup
    order-before.json    the order as it came from the listing
    items-after.json     line items after matching, before allocation
    issue-info.json      issue type, counts and timestamp
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from order_export.models import (
    LineItem,
    Order,
    line_item_from_dict,
    line_item_to_dict,
    order_from_dict,
    order_to_dict,
)

logger = logging.getLogger(__name__)

PAGE_FILE = "page.html"
ORDER_BEFORE_FILE = "order-before.json"
ITEMS_AFTER_FILE = "items-after.json"
ISSUE_INFO_FILE = "issue-info.json"


@dataclass
class CapturedCase:
    """A captured reconciliation case loaded back from disk.

    Attributes:
        path: The case directory.
        markup: Order details page markup.
        order: The order as it was before reconciliation.
        items_after: Line items the reconciliation produced.
        issue_info: Contents of ``issue-info.json``.
    """

    path: Path
    markup: str
    order: Order
    items_after: list[LineItem] = field(default_factory=list)
    issue_info: dict = field(default_factory=dict)


class CaptureRecorder:
    """Writes case directories for suspicious reconciliations.

    Usage::

        recorder = CaptureRecorder(root / "captured")
        reconcile_orders(orders, pages, recorder=recorder)
    """

    def __init__(self, directory: Path, enabled: bool = True) -> None:
        self.directory = Path(directory)
        self.enabled = enabled

    def inspect(self, markup: str, before: Order, items_after: list[LineItem]) -> list[Path]:
        """Check a reconciliation result and capture every issue found.

        Args:
            markup: The order details page markup.
            before: The order before reconciliation.
            items_after: Line items after matching, before allocation.

        Returns:
            Paths of the case directories written.
        """
        if not self.enabled:
            return []

        issues: list[str] = []

        titles = Counter(item.title for item in items_after)
        if any(count > 1 for count in titles.values()):
            logger.warning("Possible duplicate items in order %s", before.order_id)
            issues.append("duplicate-items")

        unpriced = sum(1 for item in items_after if not item.has_price)
        if 0 < unpriced < len(items_after):
            logger.warning(
                "Order %s: %d of %d items have no price on the details page",
                before.order_id,
                unpriced,
                len(items_after),
            )
            issues.append("missing-prices")

        if len(before.items) != len(items_after):
            logger.warning(
                "Item count mismatch in order %s: %d before, %d after",
                before.order_id,
                len(before.items),
                len(items_after),
            )
            issues.append("item-count-mismatch")

        return [self._write_case(issue, markup, before, items_after) for issue in issues]

    def record_error(self, markup: str, before: Order, error: Exception) -> Path | None:
        """Capture an order whose reconciliation raised *error*."""
        if not self.enabled:
            return None
        return self._write_case("error", markup, before, [], error=str(error))

    def _write_case(
        self,
        issue: str,
        markup: str,
        before: Order,
        items_after: list[LineItem],
        error: str = "",
    ) -> Path:
        now = datetime.now()
        digest = hashlib.sha256(markup.encode()).hexdigest()[:8]
        safe_order_id = re.sub(r"[^A-Za-z0-9-]", "_", before.order_id)
        case_dir = self.directory / (
            f"{issue}-{safe_order_id}-{now.strftime('%Y%m%dT%H%M%S%f')}-{digest}"
        )
        case_dir.mkdir(parents=True, exist_ok=True)

        info = {
            "issueType": issue,
            "orderId": before.order_id,
            "capturedAt": now.isoformat(timespec="seconds"),
            "itemCountBefore": len(before.items),
            "itemCountAfter": len(items_after),
            "itemsWithPrices": sum(1 for i in items_after if i.has_price),
            "itemsWithoutPrices": sum(1 for i in items_after if not i.has_price),
        }
        if error:
            info["error"] = error

        (case_dir / PAGE_FILE).write_text(markup, encoding="utf-8")
        _write_json(case_dir / ORDER_BEFORE_FILE, order_to_dict(before))
        _write_json(case_dir / ITEMS_AFTER_FILE, [line_item_to_dict(i) for i in items_after])
        _write_json(case_dir / ISSUE_INFO_FILE, info)

        logger.info("Captured %s case: %s", issue, case_dir)
        return case_dir


def load_case(case_dir: Path) -> CapturedCase:
    """Load a captured case directory for replay.

    Raises:
        FileNotFoundError: If the page or the order file is missing.
    """
    case_dir = Path(case_dir)
    markup = (case_dir / PAGE_FILE).read_text(encoding="utf-8")
    order = order_from_dict(_read_json(case_dir / ORDER_BEFORE_FILE))

    items_file = case_dir / ITEMS_AFTER_FILE
    items_after = (
        [line_item_from_dict(i) for i in _read_json(items_file)] if items_file.is_file() else []
    )
    info_file = case_dir / ISSUE_INFO_FILE
    issue_info = _read_json(info_file) if info_file.is_file() else {}

    return CapturedCase(
        path=case_dir,
        markup=markup,
        order=order,
        items_after=items_after,
        issue_info=issue_info,
    )


def list_cases(capture_dir: Path) -> list[Path]:
    """List captured case directories in *capture_dir*, sorted by name."""
    capture_dir = Path(capture_dir)
    if not capture_dir.is_dir():
        return []
    return sorted(p for p in capture_dir.iterdir() if (p / ISSUE_INFO_FILE).is_file())


def _write_json(path: Path, payload) -> None:
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def _read_json(path: Path):
    return json.loads(path.read_text(encoding="utf-8"))
