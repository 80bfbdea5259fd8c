"""Row stores."""

from .workbook import WorkbookStore, sheet_title

__all__ = ["WorkbookStore", "sheet_title"]
