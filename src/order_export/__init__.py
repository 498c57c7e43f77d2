"""Order history reconciliation for bookkeeping export."""

__version__ = "0.3.0"
