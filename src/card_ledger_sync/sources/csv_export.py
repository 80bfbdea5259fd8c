"""
Transaction source backed by a provider's CSV export.
Each row is one card transaction; card identity is repeated on every row.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional
import logging

import pandas as pd

from ..config import SourceSettings
from ..models.transaction import Card, Provider, Transaction, TransactionType
from ..sync.interfaces import TransactionSource
from ..utils.exceptions import FetchError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = (
    "card_id",
    "card_name",
    "timestamp",
    "amount",
    "currency",
    "transaction_type",
    "transaction_id",
)


class CsvExportSource(TransactionSource):
    """
    Reads cards and transactions from an exported CSV file.

    The file is read once, on first use. Amounts are read as text so they
    convert to Decimal without passing through float.
    """

    def __init__(self, file_path: Path, settings: Optional[SourceSettings] = None):
        """
        Initialize the source.

        Args:
            file_path: Path to the CSV export
            settings: Source settings (encoding, delimiter, column names)
        """
        self.file_path = Path(file_path)
        self.settings = settings or SourceSettings()
        self.column_mappings = self.settings.column_mappings
        self._df: Optional[pd.DataFrame] = None

    def _column(self, field: str) -> str:
        return self.column_mappings.get(field, field)

    def _frame(self) -> pd.DataFrame:
        if self._df is not None:
            return self._df

        logger.info(f"Reading transaction export: {self.file_path}")
        try:
            df = pd.read_csv(
                self.file_path,
                encoding=self.settings.encoding,
                delimiter=self.settings.delimiter,
                dtype=str,
                keep_default_na=False,
            )
        except Exception as e:
            logger.error(f"Failed to read export file: {e}")
            raise FetchError(f"Failed to read export file {self.file_path}: {e}") from e

        missing = [
            self._column(field)
            for field in REQUIRED_COLUMNS
            if self._column(field) not in df.columns
        ]
        if missing:
            raise FetchError(f"Export file {self.file_path} is missing columns: {missing}")

        self._df = df
        return df

    def list_cards(self) -> list[Card]:
        """List cards in order of first appearance in the export."""
        df = self._frame()
        card_id_col = self._column("card_id")
        name_col = self._column("card_name")
        provider_id_col = self._column("provider_id")
        provider_name_col = self._column("provider_name")

        cards: list[Card] = []
        for _, row in df.drop_duplicates(subset=[card_id_col]).iterrows():
            provider = None
            provider_id = str(row.get(provider_id_col, "")).strip()
            if provider_id:
                provider_name = str(row.get(provider_name_col, "")).strip()
                provider = Provider(id=provider_id, name=provider_name or provider_id)

            cards.append(
                Card(
                    id=str(row[card_id_col]).strip(),
                    name=str(row[name_col]).strip(),
                    provider=provider,
                )
            )

        logger.debug(f"Export lists {len(cards)} cards")
        return cards

    def list_transactions(
        self, card_id: str, from_date: datetime, to_date: datetime
    ) -> list[Transaction]:
        """List a card's transactions with from_date <= timestamp <= to_date."""
        df = self._frame()
        rows = df[df[self._column("card_id")].str.strip() == card_id]

        transactions: list[Transaction] = []
        for idx, row in rows.iterrows():
            txn = self._normalize_row(row, int(idx))
            if from_date <= txn.timestamp <= to_date:
                transactions.append(txn)

        logger.debug(
            f"Card {card_id}: {len(transactions)} of {len(rows)} transactions in window"
        )
        return transactions

    def _normalize_row(self, row: pd.Series, idx: int) -> Transaction:
        """
        Convert an export row into a Transaction.

        Args:
            row: Pandas Series representing a row
            idx: Row index (0-based, excluding the header)

        Raises:
            FetchError: If a value cannot be converted
        """
        # Header is line 1 of the file
        line = idx + 2

        def value(field: str) -> str:
            return str(row.get(self._column(field), "")).strip()

        txn_id = value("transaction_id")
        if not txn_id:
            raise FetchError(f"Line {line}: missing transaction id")

        currency = value("currency")
        if not currency:
            raise FetchError(f"Line {line}: missing currency")

        return Transaction(
            timestamp=self._parse_timestamp(value("timestamp"), line),
            description=value("description"),
            amount=self._parse_amount(value("amount"), line),
            currency=currency,
            type=self._parse_type(value("transaction_type"), line),
            id=txn_id,
        )

    def _parse_timestamp(self, raw: str, line: int) -> datetime:
        try:
            parsed = pd.to_datetime(raw, utc=True)
        except (ValueError, TypeError) as e:
            raise FetchError(f"Line {line}: invalid timestamp '{raw}'") from e
        if pd.isna(parsed):
            raise FetchError(f"Line {line}: missing timestamp")
        return parsed.to_pydatetime().astimezone(timezone.utc)

    def _parse_amount(self, raw: str, line: int) -> Decimal:
        try:
            amount = Decimal(raw.replace(",", ""))
        except InvalidOperation as e:
            raise FetchError(f"Line {line}: invalid amount '{raw}'") from e

        if not amount.is_finite():
            raise FetchError(f"Line {line}: invalid amount '{raw}'")
        return amount

    def _parse_type(self, raw: str, line: int) -> TransactionType:
        # Providers report DEBIT/CREDIT in upper case
        normalized = raw.strip().upper()
        if normalized == "DEBIT":
            return TransactionType.DEBIT
        if normalized == "CREDIT":
            return TransactionType.CREDIT
        raise FetchError(f"Line {line}: invalid transaction type '{raw}'")
