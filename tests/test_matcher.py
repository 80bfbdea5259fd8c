from datetime import timedelta

import pytest

from card_ledger_sync.matching import (
    ReconciliationMatcher,
    apply_matches,
    reconcile_transactions,
)
from card_ledger_sync.models import MatchedPair, TransactionType

from helpers import txn, utc

RECONCILE_DAYS = 60


def test_basic_match():
    debit = txn("tx_debit", "-50.0", TransactionType.DEBIT, utc(2025, 1, 1))
    credit = txn(
        "tx_credit", "50.0", TransactionType.CREDIT, debit.timestamp + timedelta(days=1)
    )

    matches = reconcile_transactions([debit, credit], RECONCILE_DAYS)

    assert matches == [MatchedPair(debit_id="tx_debit", credit_id="tx_credit")]


def test_credit_cleared_first():
    credit = txn("credit_id_1", "50.0", TransactionType.CREDIT, utc(2025, 1, 1))
    debit = txn(
        "debit_id_1", "-50.0", TransactionType.DEBIT, credit.timestamp + timedelta(days=1)
    )

    matches = reconcile_transactions([credit, debit], RECONCILE_DAYS)

    assert matches == [MatchedPair(debit_id="debit_id_1", credit_id="credit_id_1")]


def test_earliest_candidate_is_picked():
    debit = txn("tx_debit", "-25.0", TransactionType.DEBIT, utc(2025, 1, 1))
    later = txn(
        "tx_credit", "25.0", TransactionType.CREDIT, debit.timestamp + timedelta(days=10)
    )
    earlier = txn("tx3", "25.0", TransactionType.CREDIT, debit.timestamp + timedelta(days=5))

    matches = reconcile_transactions([debit, later, earlier], RECONCILE_DAYS)

    assert matches == [MatchedPair(debit_id="tx_debit", credit_id="tx3")]


def test_already_matched_is_ignored():
    debit = txn(
        "tx_debit",
        "-50.0",
        TransactionType.DEBIT,
        utc(2025, 1, 1),
        matched_id="tx_other",
    )
    credit = txn(
        "tx_credit", "50.0", TransactionType.CREDIT, debit.timestamp + timedelta(days=1)
    )

    assert reconcile_transactions([debit, credit], RECONCILE_DAYS) == []


def test_outside_window_is_ignored():
    debit = txn("tx_debit", "-50.0", TransactionType.DEBIT, utc(2025, 1, 1))
    credit = txn(
        "tx_credit", "50.0", TransactionType.CREDIT, debit.timestamp + timedelta(days=61)
    )

    assert reconcile_transactions([debit, credit], RECONCILE_DAYS) == []


def test_window_boundary_is_inclusive():
    debit = txn("d", "-10", TransactionType.DEBIT, utc(2025, 1, 1))
    on_boundary = txn("c", "10", TransactionType.CREDIT, debit.timestamp + timedelta(days=7))
    past_boundary = txn(
        "c2", "10", TransactionType.CREDIT, debit.timestamp + timedelta(days=8)
    )

    assert reconcile_transactions([debit, on_boundary], 7) == [MatchedPair("d", "c")]
    assert reconcile_transactions([debit, past_boundary], 7) == []


def test_partial_days_are_truncated():
    debit = txn("d", "-10", TransactionType.DEBIT, utc(2025, 1, 1))
    credit = txn(
        "c", "10", TransactionType.CREDIT, debit.timestamp + timedelta(days=7, hours=23)
    )

    assert reconcile_transactions([debit, credit], 7) == [MatchedPair("d", "c")]


def test_amount_mismatch_is_ignored():
    debit = txn("tx_debit", "-50.00", TransactionType.DEBIT, utc(2025, 1, 1))
    credit = txn(
        "tx_credit", "50.01", TransactionType.CREDIT, debit.timestamp + timedelta(days=1)
    )

    assert reconcile_transactions([debit, credit], RECONCILE_DAYS) == []


def test_decimal_scale_does_not_matter():
    debit = txn("d", "-50.0", TransactionType.DEBIT, utc(2025, 1, 1))
    credit = txn("c", "50.00", TransactionType.CREDIT, utc(2025, 1, 2))

    assert reconcile_transactions([debit, credit], 1) == [MatchedPair("d", "c")]


def test_type_tag_is_authoritative():
    # Same sign on both sides never cancels out, whatever the tags say
    debit = txn("d", "50", TransactionType.DEBIT, utc(2025, 1, 1))
    credit = txn("c", "50", TransactionType.CREDIT, utc(2025, 1, 2))
    assert reconcile_transactions([debit, credit], 5) == []

    # Opposite signs but both tagged as debits
    first = txn("d1", "-50", TransactionType.DEBIT, utc(2025, 1, 1))
    second = txn("d2", "50", TransactionType.DEBIT, utc(2025, 1, 2))
    assert reconcile_transactions([first, second], 5) == []


def test_each_transaction_used_once():
    base = utc(2025, 1, 1)
    transactions = [
        txn("d1", "-20", TransactionType.DEBIT, base),
        txn("d2", "-20", TransactionType.DEBIT, base + timedelta(days=1)),
        txn("c1", "20", TransactionType.CREDIT, base + timedelta(days=2)),
    ]

    matches = reconcile_transactions(transactions, 10)

    assert matches == [MatchedPair("d1", "c1")]


def test_multiple_buckets():
    base = utc(2025, 1, 1)
    transactions = [
        txn("tx4_debit_unmatched", "-10.0", TransactionType.DEBIT, base + timedelta(days=14)),
        txn("tx5_credit_unmatched", "20.0", TransactionType.CREDIT, base + timedelta(days=19)),
        txn(
            "tx2_credit_unmatched", "100.0", TransactionType.CREDIT, base + timedelta(days=68)
        ),
        txn("tx1_debit", "-50.0", TransactionType.DEBIT, base),
        txn("tx1_credit", "50.0", TransactionType.CREDIT, base + timedelta(days=1)),
        txn("tx2_debit", "-100.0", TransactionType.DEBIT, base + timedelta(days=4)),
        txn("tx2_credit", "100.0", TransactionType.CREDIT, base + timedelta(days=5)),
        txn("tx3_debit", "-25.0", TransactionType.DEBIT, base + timedelta(days=31)),
        txn("tx3_credit", "25.0", TransactionType.CREDIT, base + timedelta(days=32)),
    ]

    matches = reconcile_transactions(transactions, RECONCILE_DAYS)

    assert sorted(matches) == [
        MatchedPair("tx1_debit", "tx1_credit"),
        MatchedPair("tx2_debit", "tx2_credit"),
        MatchedPair("tx3_debit", "tx3_credit"),
    ]


def test_no_transactions():
    assert reconcile_transactions([], RECONCILE_DAYS) == []


def test_apply_matches_sets_both_sides():
    base = utc(2025, 1, 1)
    transactions = [
        txn("d", "-5", TransactionType.DEBIT, base),
        txn("other", "-9", TransactionType.DEBIT, base),
        txn("c", "5", TransactionType.CREDIT, base),
    ]

    updated = apply_matches(transactions, [MatchedPair("d", "c")])

    assert [t.id for t in updated] == ["d", "other", "c"]
    assert updated[0].matched_id == "c"
    assert updated[1] is transactions[1]
    assert updated[2].matched_id == "d"
    # Inputs are left untouched
    assert transactions[0].matched_id is None


def test_matcher_reconcile_applies_pairs():
    base = utc(2025, 1, 1)
    transactions = [
        txn("d", "-5", TransactionType.DEBIT, base),
        txn("c", "5", TransactionType.CREDIT, base + timedelta(days=3)),
    ]

    updated, pairs = ReconciliationMatcher(window_days=2).reconcile(transactions)
    assert pairs == []
    assert updated == transactions

    updated, pairs = ReconciliationMatcher(window_days=3).reconcile(transactions)
    assert pairs == [MatchedPair("d", "c")]
    assert [t.matched_id for t in updated] == ["c", "d"]


def test_matcher_rejects_negative_window():
    with pytest.raises(ValueError):
        ReconciliationMatcher(window_days=-1)
