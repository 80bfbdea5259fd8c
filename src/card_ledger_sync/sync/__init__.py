"""Merge engine and sync orchestration."""

from .engine import SyncEngine, fetch_window
from .interfaces import RowStore, TransactionSource
from .merge import MergeOutcome, merge_transactions, merge_with_outcome

__all__ = [
    "SyncEngine",
    "fetch_window",
    "RowStore",
    "TransactionSource",
    "MergeOutcome",
    "merge_transactions",
    "merge_with_outcome",
]
