"""Debit/credit reconciliation."""

from .reconcile import (
    ReconciliationMatcher,
    apply_matches,
    reconcile_transactions,
)

__all__ = [
    "ReconciliationMatcher",
    "apply_matches",
    "reconcile_transactions",
]
