"""
Row codec between transactions and sheet-shaped data.
Row 0 is the header; columns are located by name so reordered or
sparse sheets still decode.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Sequence, Union
import logging

from ..models.transaction import Transaction, TransactionType
from ..utils.exceptions import ParseError

logger = logging.getLogger(__name__)

# A single cell as returned by a tabular store
Cell = Union[str, int, float, Decimal, bool, None]

TIMESTAMP = "Timestamp"
DESCRIPTION = "Description"
AMOUNT = "Amount"
CURRENCY = "Currency"
TYPE = "Type"
ID = "ID"
MATCHED_ID = "Matched ID"
COMMENTS = "Comments"

# Column order of every sheet written by this tool
FIELD_NAMES: tuple[str, ...] = (
    TIMESTAMP,
    DESCRIPTION,
    AMOUNT,
    CURRENCY,
    TYPE,
    ID,
    MATCHED_ID,
    COMMENTS,
)

REQUIRED_FIELDS: tuple[str, ...] = (TIMESTAMP, AMOUNT, CURRENCY, TYPE, ID)


def index_to_column_letter(index: int) -> str:
    """
    Convert a zero-based column index to a spreadsheet column label.

    Args:
        index: Zero-based column index

    Returns:
        Label such as "A", "Z", "AA" or "AAA"
    """
    if index < 0:
        raise ValueError(f"Column index must be non-negative, got {index}")

    letter = chr(ord("A") + index % 26)
    if index >= 26:
        return index_to_column_letter(index // 26 - 1) + letter
    return letter


_COLUMN_INDEX: dict[str, int] = {name: i for i, name in enumerate(FIELD_NAMES)}
_COLUMN_LETTER: dict[str, str] = {
    name: index_to_column_letter(i) for name, i in _COLUMN_INDEX.items()
}


def column_index(name: str) -> Optional[int]:
    """Zero-based position of a field in the sheet layout, or None."""
    return _COLUMN_INDEX.get(name)


def column_letter(name: str) -> Optional[str]:
    """Spreadsheet letter of a field in the sheet layout, or None."""
    return _COLUMN_LETTER.get(name)


def header_row() -> list[Cell]:
    return list(FIELD_NAMES)


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as ISO-8601 UTC with a trailing Z."""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def encode_transaction(txn: Transaction) -> list[Cell]:
    values: dict[str, Cell] = {
        TIMESTAMP: format_timestamp(txn.timestamp),
        DESCRIPTION: txn.description,
        AMOUNT: str(txn.amount),
        CURRENCY: txn.currency,
        TYPE: txn.type.value,
        ID: txn.id,
        MATCHED_ID: txn.matched_id or "",
        COMMENTS: txn.comments or "",
    }
    return [values[name] for name in FIELD_NAMES]


def encode_rows(transactions: Sequence[Transaction]) -> list[list[Cell]]:
    """
    Encode transactions into rows, header first.

    Args:
        transactions: Transactions in the order they should be written

    Returns:
        Header row followed by one row per transaction
    """
    rows = [header_row()]
    rows.extend(encode_transaction(txn) for txn in transactions)
    return rows


def decode_rows(rows: Sequence[Sequence[Cell]]) -> list[Transaction]:
    """
    Decode sheet rows into transactions.

    Args:
        rows: Header row followed by data rows

    Returns:
        One transaction per non-blank data row

    Raises:
        ParseError: If a row is missing a required value or holds a bad one
    """
    if not rows:
        return []

    header = {
        _cell_text(name).strip(): position
        for position, name in enumerate(rows[0])
        if _cell_text(name).strip()
    }
    unknown = [name for name in header if name not in _COLUMN_INDEX]
    if unknown:
        logger.debug(f"Ignoring unknown columns: {unknown}")

    transactions: list[Transaction] = []
    for offset, row in enumerate(rows[1:], start=1):
        if all(_cell_text(cell).strip() == "" for cell in row):
            continue
        # Sheet rows are 1-based and the header is row 1
        transactions.append(_decode_row(header, row, offset + 1))

    return transactions


def _decode_row(
    header: dict[str, int], row: Sequence[Cell], row_number: int
) -> Transaction:
    def text(name: str) -> str:
        position = header.get(name)
        if position is None or position >= len(row):
            return ""
        return _cell_text(row[position])

    for name in REQUIRED_FIELDS:
        if not text(name).strip():
            raise ParseError(row_number, f"missing required value for '{name}'")

    return Transaction(
        timestamp=_parse_timestamp(text(TIMESTAMP).strip(), row_number),
        description=text(DESCRIPTION),
        amount=_parse_amount(text(AMOUNT).strip(), row_number),
        currency=text(CURRENCY),
        type=_parse_type(text(TYPE).strip(), row_number),
        id=text(ID),
        matched_id=text(MATCHED_ID) or None,
        comments=text(COMMENTS) or None,
    )


def _cell_text(value: Any) -> str:
    """Render any cell value as text without float artefacts."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, datetime):
        return format_timestamp(value)
    return str(value)


def _parse_timestamp(value: str, row_number: int) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise ParseError(row_number, f"invalid timestamp '{value}': {e}") from e

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_amount(value: str, row_number: int) -> Decimal:
    try:
        amount = Decimal(value.replace(",", ""))
    except InvalidOperation as e:
        raise ParseError(row_number, f"invalid amount '{value}'") from e

    if not amount.is_finite():
        raise ParseError(row_number, f"invalid amount '{value}'")
    return amount


def _parse_type(value: str, row_number: int) -> TransactionType:
    try:
        return TransactionType(value)
    except ValueError as e:
        raise ParseError(
            row_number,
            f"invalid type '{value}', expected one of "
            f"{[t.value for t in TransactionType]}",
        ) from e
