"""Raw-material usage reconciliation for retail branches."""

__version__ = "0.3.0"
