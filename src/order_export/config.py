"""Configuration loading and project initialization.

Reads ``config.toml`` using stdlib ``tomllib`` and writes the default file
using ``tomli_w``.  Depends only on ``models.py``.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import tomli_w

from order_export.models import AppConfig

CONFIG_FILE = "config.toml"

_CONFIG_HEADER = """\
# Order Export configuration
#
# [reconcile] base_url resolves relative item links on the order details
# page; currency is written on every export row.
# [capture] saves suspicious reconciliations as replayable cases.

"""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(root: Path) -> AppConfig:
    """Load ``config.toml`` from *root* and return an :class:`AppConfig`.

    Missing keys fall back to the :class:`AppConfig` defaults.

    Raises:
        FileNotFoundError: If ``config.toml`` does not exist.
    """
    data = _read_toml(Path(root) / CONFIG_FILE)
    defaults = AppConfig()

    reconcile = data.get("reconcile", {})
    capture = data.get("capture", {})

    return AppConfig(
        base_url=reconcile.get("base_url", defaults.base_url),
        currency=reconcile.get("currency", defaults.currency),
        capture_enabled=bool(capture.get("enabled", defaults.capture_enabled)),
        capture_dir=capture.get("directory", defaults.capture_dir),
    )


def initialize(target_dir: Path) -> Path:
    """Write a default ``config.toml`` into *target_dir*.

    Idempotent: an existing config file is **not** overwritten.

    Returns:
        Path to the config file.
    """
    target_dir = Path(target_dir)
    target_dir.mkdir(parents=True, exist_ok=True)

    path = target_dir / CONFIG_FILE
    if not path.exists():
        path.write_text(_CONFIG_HEADER + tomli_w.dumps(_config_to_toml(AppConfig())), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _read_toml(path: Path) -> dict:
    """Read and parse a TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def _config_to_toml(config: AppConfig) -> dict:
    """Lay out an :class:`AppConfig` in the ``config.toml`` table structure."""
    return {
        "reconcile": {
            "base_url": config.base_url,
            "currency": config.currency,
        },
        "capture": {
            "enabled": config.capture_enabled,
            "directory": config.capture_dir,
        },
    }
