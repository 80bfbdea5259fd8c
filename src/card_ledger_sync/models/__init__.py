"""Data models for card transactions."""

from .transaction import (
    Transaction,
    TransactionType,
    Card,
    Provider,
    MatchedPair,
    ContainerSyncResult,
    SyncSummary,
)

__all__ = [
    "Transaction",
    "TransactionType",
    "Card",
    "Provider",
    "MatchedPair",
    "ContainerSyncResult",
    "SyncSummary",
]
