"""
Cosmetic formatting for card sheets.
"""

from openpyxl.formatting.rule import FormulaRule
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.worksheet.worksheet import Worksheet

from ..codec.rows import (
    FIELD_NAMES,
    ID,
    MATCHED_ID,
    column_letter,
    index_to_column_letter,
)

# Style definitions
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)
UNMATCHED_FILL = PatternFill(start_color="FCE8B2", end_color="FCE8B2", fill_type="solid")

COLUMN_WIDTHS = {
    "Timestamp": 22,
    "Description": 40,
    "Amount": 12,
    "Currency": 10,
    "Type": 8,
    "ID": 36,
    "Matched ID": 36,
    "Comments": 40,
}


def last_column_letter() -> str:
    return index_to_column_letter(len(FIELD_NAMES) - 1)


def unmatched_formula(first_row: int = 2) -> str:
    """
    Formula flagging rows that have an ID but no Matched ID.

    Column letters are taken from the codec layout.
    """
    id_col = column_letter(ID)
    matched_col = column_letter(MATCHED_ID)
    return f"AND(NOT(ISBLANK(${id_col}{first_row})),ISBLANK(${matched_col}{first_row}))"


def data_range(row_count: int) -> str:
    """Cell range covering the data rows below the header."""
    last_row = max(row_count, 2)
    return f"A2:{last_column_letter()}{last_row}"


def style_header(ws: Worksheet) -> None:
    for cell in ws[1]:
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.alignment = Alignment(horizontal="center")


def set_column_widths(ws: Worksheet) -> None:
    for i, name in enumerate(FIELD_NAMES):
        ws.column_dimensions[index_to_column_letter(i)].width = COLUMN_WIDTHS.get(name, 15)


def highlight_unmatched(ws: Worksheet) -> None:
    """Shade rows still waiting for an offsetting transaction."""
    ws.conditional_formatting.add(
        data_range(ws.max_row),
        FormulaRule(formula=[unmatched_formula()], fill=UNMATCHED_FILL),
    )


def apply_formatting(
    ws: Worksheet, freeze_header: bool = True, highlight: bool = True
) -> None:
    """
    Apply header styling, column widths and highlighting to a card sheet.

    Args:
        ws: Worksheet holding the header row and data rows
        freeze_header: Keep the header row visible when scrolling
        highlight: Shade unmatched rows
    """
    if ws.max_row < 1:
        return

    style_header(ws)
    set_column_widths(ws)

    if freeze_header:
        ws.freeze_panes = "A2"

    if highlight:
        highlight_unmatched(ws)
