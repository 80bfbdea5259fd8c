"""
Upsert of freshly fetched transactions into a card's stored history.
"""

from dataclasses import dataclass, replace
from typing import Iterable
import logging

from ..models.transaction import Transaction

logger = logging.getLogger(__name__)


@dataclass
class MergeOutcome:
    """Counts describing what a merge did."""

    inserted: int = 0
    updated: int = 0
    retained: int = 0


def merge_with_outcome(
    existing: Iterable[Transaction],
    incoming: Iterable[Transaction],
    preserve_reconciliation: bool = True,
) -> tuple[list[Transaction], MergeOutcome]:
    """
    Merge incoming transactions over existing ones, keyed by id.

    Incoming records replace stored ones with the same id. The source never
    supplies matched_id or comments, so when preserve_reconciliation is set
    those fields are carried over from the stored record whenever the
    incoming record leaves them empty. Stored ids absent from incoming are
    kept unchanged.

    Args:
        existing: Transactions currently stored for the card
        incoming: Freshly fetched transactions for the card
        preserve_reconciliation: Carry matched_id/comments across overwrites

    Returns:
        Tuple of (transactions sorted by timestamp, merge outcome)
    """
    by_id: dict[str, Transaction] = {}
    for txn in existing:
        if txn.id in by_id:
            logger.warning(f"Duplicate stored transaction id {txn.id}, keeping last")
        by_id[txn.id] = txn

    stored_ids = set(by_id)
    seen_incoming: set[str] = set()
    outcome = MergeOutcome()

    for txn in incoming:
        prior = by_id.get(txn.id)
        if prior is not None and preserve_reconciliation:
            matched_id = txn.matched_id
            if matched_id is None:
                matched_id = prior.matched_id
            comments = txn.comments
            if comments is None:
                comments = prior.comments
            txn = replace(txn, matched_id=matched_id, comments=comments)
        by_id[txn.id] = txn

        if txn.id not in seen_incoming:
            seen_incoming.add(txn.id)
            if txn.id in stored_ids:
                outcome.updated += 1
            else:
                outcome.inserted += 1

    outcome.retained = len(stored_ids - seen_incoming)

    # sorted() is stable: equal timestamps keep insertion order
    merged = sorted(by_id.values(), key=lambda t: t.timestamp)
    return merged, outcome


def merge_transactions(
    existing: Iterable[Transaction],
    incoming: Iterable[Transaction],
    preserve_reconciliation: bool = True,
) -> list[Transaction]:
    """Merge incoming over existing and return the sorted result."""
    merged, _ = merge_with_outcome(existing, incoming, preserve_reconciliation)
    return merged
