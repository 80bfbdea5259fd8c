"""Custom exceptions for the card ledger sync."""

from typing import Optional


class SyncError(Exception):
    """Base exception for sync errors."""

    def __init__(self, message: str, container: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.container = container

    def __str__(self) -> str:
        if self.container:
            return f"[{self.container}] {self.message}"
        return self.message


class FetchError(SyncError):
    """Data source unreachable, unauthorized or returned malformed data."""

    pass


class ParseError(SyncError):
    """A stored row could not be decoded into a transaction."""

    def __init__(
        self,
        row: int,
        cause: str,
        container: Optional[str] = None,
    ):
        super().__init__(f"Row {row}: {cause}", container=container)
        self.row = row
        self.cause = cause


class PersistError(SyncError):
    """Destination store rejected a read or write."""

    pass


class ConfigError(SyncError):
    """Invalid configuration or nothing to sync."""

    pass
