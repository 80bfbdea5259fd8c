"""Transaction sources."""

from .csv_export import CsvExportSource

__all__ = ["CsvExportSource"]
