"""
Collaborator interfaces consumed by the sync engine.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from ..codec.rows import Cell
from ..models.transaction import Card, Transaction


class TransactionSource(ABC):
    """Provider of cards and their transactions."""

    @abstractmethod
    def list_cards(self) -> list[Card]:
        """
        List the cards known to the provider.

        Returns:
            Cards in a stable order

        Raises:
            FetchError: If the provider cannot be reached or answers badly
        """
        pass

    @abstractmethod
    def list_transactions(
        self, card_id: str, from_date: datetime, to_date: datetime
    ) -> list[Transaction]:
        """
        List a card's transactions within a time window.

        Args:
            card_id: Provider id of the card
            from_date: Inclusive window start (UTC)
            to_date: Inclusive window end (UTC)

        Returns:
            Decoded transactions

        Raises:
            FetchError: If the provider cannot be reached or answers badly
        """
        pass


class RowStore(ABC):
    """Tabular destination holding one sheet of rows per card."""

    @abstractmethod
    def has_container(self, name: str) -> bool:
        """Whether a sheet called ``name`` exists, without creating it."""
        pass

    @abstractmethod
    def ensure_container(self, name: str) -> None:
        """Create the sheet called ``name`` if it does not exist yet."""
        pass

    @abstractmethod
    def read_rows(self, name: str) -> list[list[Cell]]:
        """Return the header row and data rows of a sheet."""
        pass

    @abstractmethod
    def write_rows(self, name: str, rows: list[list[Cell]]) -> None:
        """Replace the whole content of a sheet, header included."""
        pass
