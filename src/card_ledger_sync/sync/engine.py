"""
Sync engine that drives fetching, merging, reconciliation and persistence
for every card, one card at a time.
"""

from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterator, Optional
import logging

from ..codec.rows import decode_rows, encode_rows
from ..config import AppConfig
from ..matching.reconcile import ReconciliationMatcher
from ..models.transaction import (
    Card,
    ContainerSyncResult,
    MatchedPair,
    SyncSummary,
    Transaction,
)
from ..utils.exceptions import ConfigError, FetchError, PersistError, SyncError
from .interfaces import RowStore, TransactionSource
from .merge import merge_with_outcome

logger = logging.getLogger(__name__)

# Called after each card with (card, cards completed, total cards)
ProgressCallback = Callable[[Card, int, int], None]


def fetch_window(now: datetime, fetch_days: int) -> tuple[datetime, datetime]:
    """
    Compute the trailing fetch window ending at ``now``.

    The start is truncated to midnight UTC so daily runs request identical
    boundaries.

    Args:
        now: End of the window
        fetch_days: Number of days to look back

    Returns:
        Tuple of (from_date, to_date) in UTC

    Raises:
        ConfigError: If fetch_days is not positive
    """
    if fetch_days < 1:
        raise ConfigError(f"fetch_days must be at least 1, got {fetch_days}")

    if now.tzinfo is None:
        to_date = now.replace(tzinfo=timezone.utc)
    else:
        to_date = now.astimezone(timezone.utc)

    from_date = (to_date - timedelta(days=fetch_days)).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    return from_date, to_date


@contextmanager
def _collaborator_errors(
    card_name: Optional[str], error_cls: type[SyncError], action: str
) -> Iterator[None]:
    """Tag sync errors with the card and wrap anything else in error_cls."""
    try:
        yield
    except SyncError as e:
        if e.container is None:
            e.container = card_name
        raise
    except Exception as e:
        raise error_cls(f"Failed to {action}: {e}", container=card_name) from e


class SyncEngine:
    """
    Syncs every card from a transaction source into a row store.

    Cards are processed sequentially; the first failure aborts the run,
    leaving already-synced cards persisted and the failing card untouched.
    """

    def __init__(
        self,
        config: AppConfig,
        source: TransactionSource,
        store: RowStore,
        matcher: Optional[ReconciliationMatcher] = None,
    ):
        """
        Initialize the sync engine.

        Args:
            config: Application configuration
            source: Provider of cards and transactions
            store: Destination holding one sheet per card
            matcher: Matcher to use; built from config when omitted
        """
        self.config = config
        self.source = source
        self.store = store
        self.matcher = matcher or ReconciliationMatcher(config.sync.reconcile_days)

    def sync(
        self,
        progress: Optional[ProgressCallback] = None,
        now: Optional[datetime] = None,
    ) -> SyncSummary:
        """
        Sync all cards.

        Args:
            progress: Optional callback invoked after each card completes
            now: End of the fetch window (defaults to the current time)

        Returns:
            Summary of the run

        Raises:
            ConfigError: If the source lists no cards
            SyncError: On the first failing card
        """
        started_at = datetime.now(timezone.utc)
        from_date, to_date = fetch_window(
            now or started_at, self.config.sync.fetch_days
        )
        logger.info(
            f"Syncing transactions from {from_date.isoformat()} to {to_date.isoformat()}"
        )

        cards = self._list_cards()
        summary = SyncSummary(
            window_start=from_date, window_end=to_date, started_at=started_at
        )

        for completed, card in enumerate(cards, start=1):
            summary.results.append(self.sync_card(card, from_date, to_date))
            if progress:
                progress(card, completed, len(cards))

        summary.processing_time_seconds = (
            datetime.now(timezone.utc) - started_at
        ).total_seconds()
        logger.info(
            f"Sync complete in {summary.processing_time_seconds:.2f}s: "
            f"{summary.card_count} cards, {summary.total_fetched} fetched, "
            f"{summary.total_matched_pairs} new pairs"
        )
        return summary

    def sync_card(
        self, card: Card, from_date: datetime, to_date: datetime
    ) -> ContainerSyncResult:
        """
        Sync one card: fetch, merge with the stored sheet, reconcile, write.

        Args:
            card: Card to sync
            from_date: Window start
            to_date: Window end

        Returns:
            Per-card result counts
        """
        with _collaborator_errors(card.name, FetchError, "fetch transactions"):
            incoming = self.source.list_transactions(card.id, from_date, to_date)
        logger.debug(f"Fetched {len(incoming)} transactions for {card.name}")

        existing = self._read_sheet(card.name)

        merged, outcome = merge_with_outcome(existing, incoming)

        pairs: list[MatchedPair] = []
        if self.config.sync.reconcile_on_sync:
            merged, pairs = self.matcher.reconcile(merged, card.name)

        self._write_sheet(card.name, merged)

        logger.info(
            f"Card synced: {card.name} ({outcome.inserted} new, "
            f"{outcome.updated} updated, {outcome.retained} kept, "
            f"{len(pairs)} pairs matched)"
        )
        return ContainerSyncResult(
            card_name=card.name,
            fetched_count=len(incoming),
            existing_count=len(existing),
            inserted_count=outcome.inserted,
            updated_count=outcome.updated,
            retained_count=outcome.retained,
            total_count=len(merged),
            matched_pairs=pairs,
        )

    def reconcile_stored(
        self, progress: Optional[ProgressCallback] = None, dry_run: bool = False
    ) -> dict[str, list[MatchedPair]]:
        """
        Run the matcher over every card's stored sheet.

        Args:
            progress: Optional callback invoked after each card completes
            dry_run: Compute pairs without writing them back

        Returns:
            New pairs keyed by card name
        """
        cards = self._list_cards()
        results: dict[str, list[MatchedPair]] = {}

        for completed, card in enumerate(cards, start=1):
            pairs: list[MatchedPair] = []
            with _collaborator_errors(
                card.name, PersistError, f"check sheet '{card.name}'"
            ):
                exists = self.store.has_container(card.name)

            # Cards never synced have nothing to reconcile
            if exists:
                stored = self._read_sheet(card.name)
                updated, pairs = self.matcher.reconcile(stored, card.name)
                if pairs and not dry_run:
                    self._write_sheet(card.name, updated)
            else:
                logger.info(f"No stored sheet for {card.name}, skipping")

            results[card.name] = pairs
            if progress:
                progress(card, completed, len(cards))

        return results

    def _list_cards(self) -> list[Card]:
        with _collaborator_errors(None, FetchError, "list cards"):
            cards = self.source.list_cards()
        if not cards:
            raise ConfigError("No cards found")
        logger.info(f"Found {len(cards)} cards")
        return cards

    def _read_sheet(self, name: str) -> list[Transaction]:
        with _collaborator_errors(name, PersistError, f"read sheet '{name}'"):
            self.store.ensure_container(name)
            rows = self.store.read_rows(name)
            return decode_rows(rows)

    def _write_sheet(self, name: str, transactions: list[Transaction]) -> None:
        rows = encode_rows(transactions)
        with _collaborator_errors(name, PersistError, f"write sheet '{name}'"):
            self.store.write_rows(name, rows)
