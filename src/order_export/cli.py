"""Click CLI entry point for the order-export command.

Handles argument parsing, config loading, file I/O and error display.  All
reconciliation logic is delegated to the ``reconcile`` package.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from order_export import __version__


def _configure_logging(verbose: bool, debug: bool) -> None:
    """Set up logging based on verbosity flags."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        force=True,
    )


def _load_pages(pages_dir: Path, order_ids: list[str]) -> dict[str, str]:
    """Read ``{pages_dir}/{order_id}.html`` for every order that has one."""
    pages: dict[str, str] = {}
    for order_id in order_ids:
        page_file = pages_dir / f"{order_id}.html"
        if page_file.is_file():
            pages[order_id] = page_file.read_text(encoding="utf-8")
    return pages


@click.group()
@click.version_option(version=__version__, prog_name="order-export")
def cli() -> None:
    """Reconcile scraped order history into priced line items."""


@cli.command()
@click.option(
    "--orders",
    "orders_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file with the scraped order records.",
)
@click.option(
    "--pages",
    "pages_dir",
    required=True,
    type=click.Path(exists=True, file_okay=False),
    help="Directory with one <orderId>.html details page per order.",
)
@click.option(
    "--output",
    "output_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write reconciled orders here instead of stdout.",
)
@click.option("--verbose", is_flag=True, default=False, help="Detailed progress output.")
@click.option("--debug", is_flag=True, default=False, help="Developer-level diagnostics.")
def reconcile(
    orders_file: str,
    pages_dir: str,
    output_file: str | None,
    verbose: bool,
    debug: bool,
) -> None:
    """Resolve item prices for every order from its details page."""
    _configure_logging(verbose, debug)
    root = Path.cwd()

    # Load configuration
    try:
        from order_export.config import load_config

        config = load_config(root)
    except FileNotFoundError as exc:
        click.echo(
            f"Error: {exc}. Run 'order-export init' to create a config file.",
            err=True,
        )
        sys.exit(1)
    except Exception as exc:
        click.echo(f"Error loading configuration: {exc}", err=True)
        sys.exit(1)

    # Load orders
    from order_export.models import order_from_dict, order_to_dict

    try:
        raw_orders = json.loads(Path(orders_file).read_text(encoding="utf-8"))
        orders = [order_from_dict(o) for o in raw_orders]
    except (json.JSONDecodeError, KeyError, TypeError) as exc:
        click.echo(f"Error reading orders from {orders_file}: {exc}", err=True)
        sys.exit(1)

    pages = _load_pages(Path(pages_dir), [o.order_id for o in orders])
    if verbose:
        click.echo(f"Loaded {len(orders)} orders, {len(pages)} details pages.", err=True)

    # Reconcile
    from order_export.capture import CaptureRecorder
    from order_export.reconcile import reconcile_orders

    recorder = None
    if config.capture_enabled:
        recorder = CaptureRecorder(root / config.capture_dir)

    result = reconcile_orders(orders, pages, base_url=config.base_url, recorder=recorder)

    # Write output
    payload = json.dumps(
        [order_to_dict(o) for o in result.orders], indent=2, ensure_ascii=False
    )
    if output_file:
        try:
            Path(output_file).write_text(payload, encoding="utf-8")
        except OSError as exc:
            click.echo(f"Error writing output: {exc}", err=True)
            sys.exit(1)
        if verbose:
            click.echo(f"Wrote output to {output_file}", err=True)
    else:
        click.echo(payload)

    # Summary
    click.echo("", err=True)
    click.echo("== Reconcile Summary ==", err=True)
    click.echo(f"  Orders:           {len(result.orders)}", err=True)
    click.echo(f"  Failed:           {len(result.failed_order_ids)}", err=True)
    click.echo(f"  Warnings:         {len(result.warnings)}", err=True)
    click.echo(f"  Inconsistencies:  {len(result.inconsistencies)}", err=True)

    if result.inconsistencies:
        click.echo("", err=True)
        click.echo("Inconsistencies:", err=True)
        for line in result.inconsistencies:
            click.echo(f"  - {line}", err=True)

    if result.errors:
        click.echo("", err=True)
        click.echo("Errors:", err=True)
        for line in result.errors:
            click.echo(f"  - {line}", err=True)

    if verbose and result.warnings:
        click.echo("", err=True)
        click.echo("Warnings:", err=True)
        for line in result.warnings:
            click.echo(f"  - {line}", err=True)


@cli.command()
@click.option(
    "--orders",
    "orders_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file with reconciled order records.",
)
@click.option("--year", type=int, default=None, help="Year assumed for delivery dates.")
def rows(orders_file: str, year: int | None) -> None:
    """Print one export row per line item as JSON lines."""
    from order_export.config import load_config
    from order_export.export import build_export_rows
    from order_export.models import AppConfig, order_from_dict

    try:
        config = load_config(Path.cwd())
    except FileNotFoundError:
        config = AppConfig()

    try:
        raw_orders = json.loads(Path(orders_file).read_text(encoding="utf-8"))
        orders = [order_from_dict(o) for o in raw_orders]
    except (json.JSONDecodeError, KeyError, TypeError) as exc:
        click.echo(f"Error reading orders from {orders_file}: {exc}", err=True)
        sys.exit(1)

    for row in build_export_rows(orders, currency=config.currency, year=year):
        click.echo(json.dumps(row.as_dict(), ensure_ascii=False))


@cli.command()
@click.option(
    "--dir", "target_dir", default=".", type=click.Path(), help="Directory to initialize."
)
def init(target_dir: str) -> None:
    """Write a default config.toml into a directory."""
    from order_export.config import initialize

    target = Path(target_dir).resolve()

    try:
        path = initialize(target)
    except Exception as exc:
        click.echo(f"Error initializing project: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Initialized order-export config in {path}")
