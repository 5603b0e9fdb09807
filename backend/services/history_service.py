"""History service — daily bars per symbol, refetched at most once per freshness window."""

import logging
import time
from datetime import date, timedelta
from typing import Callable, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from integrations.market_data_protocol import HistoryBar, HistoryProvider
from models import StockHistory, StockMetadata
from services.exceptions import HistoryPersistenceError
from services.quote_service import QuoteService
from utils.clock import Clock, ensure_utc
from utils.ticker import normalize_symbol

logger = logging.getLogger(__name__)


def bar_from_row(row: StockHistory) -> HistoryBar:
    return HistoryBar(
        symbol=row.symbol,
        date=row.date,
        open=row.open,
        high=row.high,
        low=row.low,
        close=row.close,
        adj_close=row.adj_close,
        volume=row.volume or 0,
    )


class HistoryService:
    """Serves stored daily history and refreshes it from providers.

    ``StockMetadata.last_fetched_at`` decides freshness: inside the window
    the stored rows are served as-is, outside it the provider chain is
    walked and the symbol's rows are replaced wholesale.
    """

    def __init__(
        self,
        providers: Sequence[tuple[HistoryProvider, float]],
        quote_service: QuoteService,
        clock: Optional[Clock] = None,
        sleep: Callable[[float], None] = time.sleep,
        freshness_hours: float = 24.0,
        fetch_days: int = 365,
        default_days: int = 365 * 5,
    ):
        """Initialize with the history chain.

        Args:
            providers: ``(provider, delay_seconds)`` pairs in priority
                       order; the delay is taken before that provider's
                       attempt.
            quote_service: Used to fill in missing security names.
            clock: Source of "now" (defaults to the UTC wall clock).
            sleep: Pause function for the pre-attempt delays.
            freshness_hours: How long a fetched history stays fresh.
            fetch_days: Calendar days requested from providers per refetch.
            default_days: Window served when the caller gives none.
        """
        self._providers = tuple(providers)
        self._quotes = quote_service
        self._clock = clock or Clock()
        self._sleep = sleep
        self.freshness = timedelta(hours=freshness_hours)
        self.fetch_days = fetch_days
        self.default_days = default_days

    def get_historical_data(
        self,
        db: Session,
        symbol: str,
        days: Optional[int] = None,
        force_refresh: bool = False,
    ) -> list[HistoryBar]:
        """Return daily bars for ``symbol`` within the last ``days`` days, oldest first.

        Serves stored rows when the symbol was fetched within the freshness
        window (unless ``force_refresh``); otherwise refetches.

        Raises:
            HistoryPersistenceError: The refetched bars could not be stored.
        """
        symbol = normalize_symbol(symbol)
        days = self.default_days if days is None else days

        if not force_refresh:
            metadata = db.get(StockMetadata, symbol)
            if self._is_fresh(metadata):
                logger.debug("Serving stored history for %s", symbol)
                return self.get_stored_history(db, symbol, days)

        return self.fetch_and_store(db, symbol, days)

    def get_stored_history(
        self, db: Session, symbol: str, days: Optional[int] = None
    ) -> list[HistoryBar]:
        """Stored bars with ``date >= today - days``, oldest first. No network."""
        symbol = normalize_symbol(symbol)
        days = self.default_days if days is None else days
        start_date = self._clock.today() - timedelta(days=days)

        rows = (
            db.query(StockHistory)
            .filter(StockHistory.symbol == symbol, StockHistory.date >= start_date)
            .order_by(StockHistory.date.asc())
            .all()
        )
        return [bar_from_row(r) for r in rows]

    def fetch_and_store(
        self, db: Session, symbol: str, days: Optional[int] = None
    ) -> list[HistoryBar]:
        """Walk the history chain and replace the stored bars on success.

        The first provider returning a non-empty sequence wins. When every
        provider fails, the currently stored bars are returned instead.

        Raises:
            HistoryPersistenceError: The replace transaction failed.
        """
        symbol = normalize_symbol(symbol)
        days = self.default_days if days is None else days

        for provider, delay in self._providers:
            logger.info("Trying %s for %s historical data", provider.provider_name, symbol)
            if delay:
                self._sleep(delay)

            try:
                bars = provider.get_history(symbol, self.fetch_days)
            except Exception:
                logger.warning(
                    "History provider %s raised for %s", provider.provider_name, symbol,
                    exc_info=True,
                )
                continue

            if not bars:
                logger.info("%s returned no history for %s", provider.provider_name, symbol)
                continue

            logger.info(
                "%s returned %d records for %s", provider.provider_name, len(bars), symbol
            )
            stored = self.replace_history(db, symbol, bars)
            start_date = self._clock.today() - timedelta(days=days)
            return [b for b in stored if b.date >= start_date]

        logger.warning("All history providers failed for %s, serving stored data", symbol)
        return self.get_stored_history(db, symbol, days)

    def replace_history(
        self, db: Session, symbol: str, bars: Sequence[HistoryBar]
    ) -> list[HistoryBar]:
        """Atomically swap the stored bars for ``symbol`` with ``bars``.

        Deletes every existing row for the symbol, inserts the new bars
        (a repeated date keeps its first bar) and upserts the metadata with
        the covered date range and ``last_fetched_at = now``, all in one
        transaction.

        Returns:
            The bars that were stored, oldest first.

        Raises:
            HistoryPersistenceError: Anything failed; nothing was changed.
        """
        symbol = normalize_symbol(symbol)

        unique: dict[date, HistoryBar] = {}
        for bar in bars:
            if bar.date in unique:
                continue
            unique[bar.date] = HistoryBar(
                symbol=symbol,
                date=bar.date,
                open=bar.open,
                high=bar.high,
                low=bar.low,
                close=bar.close,
                adj_close=bar.adj_close,
                volume=bar.volume or 0,
            )
        stored = sorted(unique.values(), key=lambda b: b.date)
        if not stored:
            raise ValueError(f"No bars to store for {symbol}")

        try:
            with db.begin_nested():
                db.query(StockHistory).filter(StockHistory.symbol == symbol).delete(
                    synchronize_session=False
                )
                db.add_all(
                    StockHistory(
                        symbol=b.symbol,
                        date=b.date,
                        open=b.open,
                        high=b.high,
                        low=b.low,
                        close=b.close,
                        adj_close=b.adj_close,
                        volume=b.volume,
                    )
                    for b in stored
                )

                metadata = db.get(StockMetadata, symbol)
                if metadata is None:
                    metadata = StockMetadata(symbol=symbol)
                    db.add(metadata)
                metadata.history_start_date = stored[0].date
                metadata.history_end_date = stored[-1].date
                metadata.last_fetched_at = self._clock.now()
                db.flush()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("DB error storing history for %s", symbol, exc_info=True)
            raise HistoryPersistenceError(symbol) from e

        logger.info("Stored %d historical records for %s", len(stored), symbol)
        return stored

    def get_stock_metadata(self, db: Session, symbol: str) -> StockMetadata:
        """Return the stored metadata, filling in a missing name from a quote.

        Makes at most one quote lookup and never fetches history. When no
        name can be found the existing row, or an unsaved
        ``StockMetadata(symbol=...)``, is returned.
        The name is written in a savepoint and left for the caller to commit.
        """
        symbol = normalize_symbol(symbol)
        metadata = db.get(StockMetadata, symbol)
        if metadata is not None and metadata.name:
            return metadata

        quote = self._quotes.get_quote(db, symbol)
        if quote is None:
            return metadata if metadata is not None else StockMetadata(symbol=symbol)

        try:
            with db.begin_nested():
                if metadata is None:
                    metadata = StockMetadata(symbol=symbol)
                    db.add(metadata)
                metadata.name = quote.name
                db.flush()
        except SQLAlchemyError:
            logger.warning("Failed to store name for %s", symbol, exc_info=True)
            return StockMetadata(symbol=symbol, name=quote.name)

        return metadata

    def has_recent_data(self, db: Session, symbol: str) -> bool:
        """True if the symbol's history was fetched within the freshness window."""
        return self._is_fresh(db.get(StockMetadata, normalize_symbol(symbol)))

    def _is_fresh(self, metadata: Optional[StockMetadata]) -> bool:
        if metadata is None or metadata.last_fetched_at is None:
            return False
        age = self._clock.now() - ensure_utc(metadata.last_fetched_at)
        return age < self.freshness
