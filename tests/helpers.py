"""Transaction factories and in-memory collaborators for tests."""

from datetime import datetime, timezone
from decimal import Decimal

from card_ledger_sync.models import Transaction, TransactionType
from card_ledger_sync.sync.interfaces import RowStore, TransactionSource


def utc(year: int, month: int, day: int, hour: int = 0) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def txn(
    id: str,
    amount: str,
    type: TransactionType,
    timestamp: datetime,
    description: str = "Test transaction",
    **kwargs,
) -> Transaction:
    return Transaction(
        timestamp=timestamp,
        description=description,
        amount=Decimal(amount),
        currency="GBP",
        type=type,
        id=id,
        **kwargs,
    )


class FakeSource(TransactionSource):
    """Serves fixed cards; a card mapped to an exception raises it."""

    def __init__(self, cards, transactions_by_card):
        self.cards = cards
        self.transactions_by_card = transactions_by_card
        self.calls = []

    def list_cards(self):
        return list(self.cards)

    def list_transactions(self, card_id, from_date, to_date):
        self.calls.append((card_id, from_date, to_date))
        result = self.transactions_by_card.get(card_id, [])
        if isinstance(result, Exception):
            raise result
        return list(result)


class FakeStore(RowStore):
    def __init__(self, sheets=None):
        self.sheets = dict(sheets or {})
        self.writes = []

    def has_container(self, name):
        return name in self.sheets

    def ensure_container(self, name):
        self.sheets.setdefault(name, [])

    def read_rows(self, name):
        return [list(row) for row in self.sheets[name]]

    def write_rows(self, name, rows):
        self.writes.append(name)
        self.sheets[name] = [list(row) for row in rows]
