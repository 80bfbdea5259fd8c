"""
Debit/credit pairing for card transactions.
Links each debit to an offsetting credit of the same amount within a
window of days, greedily and in timestamp order.
"""

from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence
import logging

from ..models.transaction import MatchedPair, Transaction, TransactionType

logger = logging.getLogger(__name__)


def reconcile_transactions(
    transactions: Sequence[Transaction], days: int
) -> list[MatchedPair]:
    """
    Find debit/credit pairs of equal magnitude within a day window.

    Only transactions without a matched_id take part. Candidates are
    bucketed by absolute amount and each bucket is scanned in timestamp
    order. Every debit takes the first available credit that exactly
    offsets it and lies at most ``days`` whole days away. Credits never
    start a search, so each pair is found once. This is first-fit, not a
    globally optimal assignment.

    Args:
        transactions: Transactions to pair, typically one card's history
        days: Maximum distance in whole days between the two sides

    Returns:
        Matched pairs, grouped by amount in first-seen order
    """
    by_amount: dict[Decimal, list[Transaction]] = {}
    for txn in transactions:
        if txn.matched_id is not None:
            continue
        by_amount.setdefault(abs(txn.amount), []).append(txn)

    matches: list[MatchedPair] = []

    for group in by_amount.values():
        group.sort(key=lambda t: t.timestamp)
        consumed = [False] * len(group)

        for i, debit in enumerate(group):
            if consumed[i] or debit.type != TransactionType.DEBIT:
                continue

            for j, credit in enumerate(group):
                if i == j or consumed[j]:
                    continue
                if credit.type != TransactionType.CREDIT:
                    continue
                # Bucketing used abs(), so check the signs really cancel
                if debit.amount + credit.amount != 0:
                    continue
                if debit.id == credit.id:
                    continue
                if _days_apart(debit.timestamp, credit.timestamp) > days:
                    continue

                consumed[i] = consumed[j] = True
                matches.append(MatchedPair(debit_id=debit.id, credit_id=credit.id))
                break

    return matches


def apply_matches(
    transactions: Sequence[Transaction], pairs: Sequence[MatchedPair]
) -> list[Transaction]:
    """
    Write matched pairs back onto the transactions' matched_id field.

    The debit receives the credit's id and the credit the debit's id.
    Transactions not named by any pair are returned unchanged, in order.
    """
    counterpart: dict[str, str] = {}
    for pair in pairs:
        counterpart[pair.debit_id] = pair.credit_id
        counterpart[pair.credit_id] = pair.debit_id

    return [
        replace(txn, matched_id=counterpart[txn.id]) if txn.id in counterpart else txn
        for txn in transactions
    ]


def _days_apart(a: datetime, b: datetime) -> int:
    """Whole days between two timestamps, truncated."""
    return abs(b - a).days


class ReconciliationMatcher:
    """
    Runs the pairing over a card's transactions with a configured window.
    """

    def __init__(self, window_days: int):
        """
        Initialize the matcher.

        Args:
            window_days: Maximum distance in days between paired transactions
        """
        if window_days < 0:
            raise ValueError(f"window_days must be non-negative, got {window_days}")
        self.window_days = window_days

    def find_pairs(
        self,
        transactions: Sequence[Transaction],
        card_name: Optional[str] = None,
    ) -> list[MatchedPair]:
        """Compute pairs without modifying the transactions."""
        pairs = reconcile_transactions(transactions, self.window_days)
        candidates = sum(1 for t in transactions if t.matched_id is None)
        unmatched = candidates - 2 * len(pairs)
        logger.debug(
            f"Reconciled {card_name or 'transactions'}: {len(pairs)} new pairs, "
            f"{unmatched} still unmatched"
        )
        return pairs

    def reconcile(
        self,
        transactions: Sequence[Transaction],
        card_name: Optional[str] = None,
    ) -> tuple[list[Transaction], list[MatchedPair]]:
        """
        Pair transactions and apply the pairs.

        Returns:
            Tuple of (updated transactions, new pairs)
        """
        pairs = self.find_pairs(transactions, card_name)
        if not pairs:
            return list(transactions), pairs
        return apply_matches(transactions, pairs), pairs
