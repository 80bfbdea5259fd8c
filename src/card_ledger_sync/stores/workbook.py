"""
Row store backed by a local Excel workbook, one worksheet per card.
"""

from pathlib import Path
from typing import Optional
import logging
import re

from openpyxl import Workbook, load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from ..codec.rows import Cell
from ..config import StoreSettings
from ..sync.interfaces import RowStore
from ..utils.exceptions import PersistError
from .formatting import apply_formatting

logger = logging.getLogger(__name__)

# Excel rejects these in sheet titles and caps titles at 31 characters
_INVALID_TITLE_CHARS = re.compile(r"[\[\]:*?/\\]")
MAX_TITLE_LENGTH = 31


def sheet_title(name: str) -> str:
    """Turn a card name into a valid worksheet title."""
    title = _INVALID_TITLE_CHARS.sub("-", name).strip().strip("'")
    return title[:MAX_TITLE_LENGTH] or "Card"


class WorkbookStore(RowStore):
    """
    Keeps each card's rows in its own worksheet of an .xlsx file.

    Writes replace the worksheet and save the file immediately.
    """

    def __init__(self, path: Path, settings: Optional[StoreSettings] = None):
        """
        Initialize the store.

        Args:
            path: Workbook file; created on first write if missing
            settings: Formatting options
        """
        self.path = Path(path)
        self.settings = settings or StoreSettings()
        self._wb: Optional[Workbook] = None

    def _workbook(self) -> Workbook:
        if self._wb is not None:
            return self._wb

        if self.path.exists():
            logger.debug(f"Opening workbook: {self.path}")
            try:
                self._wb = load_workbook(self.path)
            except Exception as e:
                raise PersistError(f"Failed to open workbook {self.path}: {e}") from e
        else:
            logger.info(f"Workbook not found, starting empty: {self.path}")
            self._wb = Workbook()
            # Remove default sheet
            if self._wb.active:
                self._wb.remove(self._wb.active)

        return self._wb

    def _save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._workbook().save(self.path)
        except PersistError:
            raise
        except Exception as e:
            raise PersistError(f"Failed to save workbook {self.path}: {e}") from e

    def sheet_names(self) -> list[str]:
        return list(self._workbook().sheetnames)

    def _worksheet(self, name: str) -> Optional[Worksheet]:
        wb = self._workbook()
        title = sheet_title(name)
        return wb[title] if title in wb.sheetnames else None

    def has_container(self, name: str) -> bool:
        return self._worksheet(name) is not None

    def ensure_container(self, name: str) -> None:
        if self._worksheet(name) is not None:
            logger.debug(f"Found existing sheet: {name}")
            return

        self._workbook().create_sheet(sheet_title(name))
        self._save()
        logger.debug(f"Created sheet: {name}")

    def read_rows(self, name: str) -> list[list[Cell]]:
        ws = self._worksheet(name)
        if ws is None:
            raise PersistError(f"Sheet '{name}' does not exist", container=name)

        rows = [list(row) for row in ws.iter_rows(values_only=True)]

        # Drop trailing blank rows left behind by deletions
        while rows and all(cell is None or cell == "" for cell in rows[-1]):
            rows.pop()
        return rows

    def write_rows(self, name: str, rows: list[list[Cell]]) -> None:
        wb = self._workbook()
        title = sheet_title(name)

        # Full overwrite: drop the old sheet with its cells and rules
        position = len(wb.sheetnames)
        if title in wb.sheetnames:
            position = wb.sheetnames.index(title)
            wb.remove(wb[title])
        ws = wb.create_sheet(title, position)

        for row in rows:
            ws.append([None if cell == "" else cell for cell in row])
            # Provider text such as "=SUM" must stay literal, never a formula
            for cell in ws[ws.max_row]:
                if cell.data_type == "f":
                    cell.data_type = "s"

        if rows:
            apply_formatting(
                ws,
                freeze_header=self.settings.freeze_header,
                highlight=self.settings.highlight_unmatched,
            )

        self._save()
        logger.debug(f"Wrote {max(len(rows) - 1, 0)} rows to sheet: {name}")
