"""Utility modules."""

from .exceptions import (
    SyncError,
    FetchError,
    ParseError,
    PersistError,
    ConfigError,
)
from .logging_config import setup_logging

__all__ = [
    "SyncError",
    "FetchError",
    "ParseError",
    "PersistError",
    "ConfigError",
    "setup_logging",
]
