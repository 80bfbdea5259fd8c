"""Conversion between transactions and sheet rows."""

from .rows import (
    Cell,
    FIELD_NAMES,
    column_index,
    column_letter,
    decode_rows,
    encode_rows,
    index_to_column_letter,
)

__all__ = [
    "Cell",
    "FIELD_NAMES",
    "column_index",
    "column_letter",
    "decode_rows",
    "encode_rows",
    "index_to_column_letter",
]
