"""Card transaction sync with debit/credit reconciliation."""

__version__ = "0.1.0"
