"""Performance service — chart-ready value history with on-demand backfill."""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from models import PortfolioSnapshot
from schemas.performance import PerformancePoint, RefreshResult
from services.exceptions import HistoryPersistenceError
from services.history_service import HistoryService
from services.snapshot_service import SnapshotService
from utils.clock import Clock
from utils.ticker import normalize_symbol, unique_symbols

logger = logging.getLogger(__name__)

DEFAULT_PERIOD = "ALL"

# Fixed-length periods in calendar days; YTD depends on the date.
PERIOD_DAYS: dict[str, int] = {
    "1D": 1,
    "1W": 7,
    "1M": 30,
    "3M": 90,
    "1Y": 365,
    "ALL": 365,
}


def resolve_period_days(period: Optional[str], today: date, default_days: Optional[int] = None) -> int:
    """Map a chart period label to a number of days.

    Unknown or missing labels fall back to ``default_days`` (or 365).
    """
    label = (period or "").upper()
    if label == "YTD":
        return max((today - date(today.year, 1, 1)).days, 1)
    if label in PERIOD_DAYS:
        return PERIOD_DAYS[label]
    return default_days if default_days and default_days > 0 else PERIOD_DAYS[DEFAULT_PERIOD]


class PerformanceService:
    """Ties the history and snapshot services together for charting.

    Reading a chart guarantees a usable series: when too few snapshots
    exist, stale symbol histories are refreshed and the series is
    backfilled before it is returned.
    """

    def __init__(
        self,
        history_service: HistoryService,
        snapshot_service: SnapshotService,
        clock: Optional[Clock] = None,
        min_points: int = 30,
        backfill_days: int = 365,
    ):
        self._history = history_service
        self._snapshots = snapshot_service
        self._clock = clock or Clock()
        self.min_points = min_points
        self.backfill_days = backfill_days

    def get_performance(
        self,
        db: Session,
        user_id: str,
        period: Optional[str] = DEFAULT_PERIOD,
        days: Optional[int] = None,
    ) -> list[PerformancePoint]:
        """Chart points for the period, oldest first, ending with today's live value.

        Raises:
            HistoryPersistenceError: A backfill refetch could not be stored.
        """
        window = resolve_period_days(period, self._clock.today(), days)

        existing = self._snapshots.get_performance_history(db, user_id, window)
        if len(existing) < self.min_points:
            logger.info(
                "Only %d snapshots for user %s, backfilling", len(existing), user_id
            )
            for symbol in self._held_symbols(db, user_id):
                if not self._history.has_recent_data(db, symbol):
                    self._history.get_historical_data(db, symbol, force_refresh=True)
            self._snapshots.generate_historical_snapshots(db, user_id, self.backfill_days)

        self._snapshots.record_daily_snapshot(db, user_id)

        snapshots = self._snapshots.get_performance_history(db, user_id, window)
        return [PerformancePoint.from_snapshot(s) for s in snapshots]

    def refresh_history(self, db: Session, user_id: str) -> RefreshResult:
        """Force a history refetch for every held symbol, then rebuild the series.

        A symbol whose bars could not be stored is reported in ``errors``
        and the remaining symbols are still refreshed.
        """
        result = RefreshResult()
        symbols = self._held_symbols(db, user_id)
        logger.info("Refreshing historical data for %d symbols", len(symbols))

        for symbol in symbols:
            try:
                bars = self._history.get_historical_data(db, symbol, force_refresh=True)
            except HistoryPersistenceError as e:
                result.errors.append(f"{symbol}: {e}")
                continue
            if bars:
                result.symbols_refreshed.append(symbol)
            else:
                result.symbols_without_data.append(symbol)

        written = self._snapshots.generate_historical_snapshots(db, user_id, self.backfill_days)
        result.snapshots_written = len(written)
        return result

    def prepare_symbol(self, db: Session, user_id: str, symbol: str) -> list[PortfolioSnapshot]:
        """Hook for a newly added holding: make sure its history exists, then rebuild.

        Raises:
            HistoryPersistenceError: The fetched bars could not be stored.
        """
        symbol = normalize_symbol(symbol)
        if not self._history.has_recent_data(db, symbol):
            logger.info("Fetching historical data for %s", symbol)
            self._history.get_historical_data(db, symbol, force_refresh=True)
        return self._snapshots.generate_historical_snapshots(db, user_id, self.backfill_days)

    def _held_symbols(self, db: Session, user_id: str) -> list[str]:
        return unique_symbols(h.symbol for h in self._snapshots.load_holdings(db, user_id))
