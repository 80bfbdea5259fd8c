"""Data models for card transactions, cards and sync results."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional


class TransactionType(Enum):
    """Direction of a card transaction."""

    DEBIT = "Debit"  # Money out (purchases, fees)
    CREDIT = "Credit"  # Money in (refunds, repayments)


@dataclass
class Transaction:
    """
    Canonical card transaction as stored in a card's sheet.

    Amounts are exact decimals. The sign usually agrees with the type
    (debits negative, credits positive) but only the type tag is authoritative.
    """

    # Point in time, always UTC
    timestamp: datetime

    description: str

    amount: Decimal

    currency: str

    type: TransactionType

    # Provider identity, unique within a card
    id: str

    # Id of the opposite-side transaction, set by reconciliation
    matched_id: Optional[str] = None

    # Operator notes, never written by the sync
    comments: Optional[str] = None

    def __post_init__(self) -> None:
        """Normalize timestamp to UTC."""
        if self.timestamp.tzinfo is None:
            self.timestamp = self.timestamp.replace(tzinfo=timezone.utc)
        else:
            self.timestamp = self.timestamp.astimezone(timezone.utc)

    @property
    def is_matched(self) -> bool:
        return self.matched_id is not None


@dataclass
class Provider:
    """Card issuer as reported by the data source."""

    id: str
    name: str


@dataclass
class Card:
    """A payment card; its transactions live in the sheet named after it."""

    id: str
    name: str
    provider: Optional[Provider] = None


@dataclass(frozen=True, order=True)
class MatchedPair:
    """A debit linked to the credit that offsets it."""

    debit_id: str
    credit_id: str


@dataclass
class ContainerSyncResult:
    """Outcome of syncing a single card."""

    card_name: str
    fetched_count: int
    existing_count: int
    inserted_count: int
    updated_count: int
    retained_count: int
    total_count: int
    matched_pairs: list[MatchedPair] = field(default_factory=list)


@dataclass
class SyncSummary:
    """Summary of a whole sync run."""

    window_start: datetime
    window_end: datetime
    started_at: datetime
    results: list[ContainerSyncResult] = field(default_factory=list)
    processing_time_seconds: float = 0.0

    @property
    def card_count(self) -> int:
        return len(self.results)

    @property
    def total_fetched(self) -> int:
        return sum(r.fetched_count for r in self.results)

    @property
    def total_inserted(self) -> int:
        return sum(r.inserted_count for r in self.results)

    @property
    def total_updated(self) -> int:
        return sum(r.updated_count for r in self.results)

    @property
    def total_stored(self) -> int:
        return sum(r.total_count for r in self.results)

    @property
    def total_matched_pairs(self) -> int:
        return sum(len(r.matched_pairs) for r in self.results)
