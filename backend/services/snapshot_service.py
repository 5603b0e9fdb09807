"""Snapshot service — records and reconstructs a user's daily portfolio value."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from models import Holding, Portfolio, PortfolioSnapshot, StockHistory, User
from services.quote_service import QuoteService
from utils.clock import Clock
from utils.ticker import normalize_symbol, unique_symbols

logger = logging.getLogger(__name__)


@dataclass
class DayTotals:
    """Aggregated value of all holdings on one day."""

    total_value: float = 0.0
    total_cost: float = 0.0
    day_gain: float = 0.0


@dataclass
class SnapshotRunSummary:
    """Summary of a scheduled run over all active users."""

    users_processed: int = 0
    snapshots_recorded: int = 0
    errors: list[str] = field(default_factory=list)


class SnapshotService:
    """Builds PortfolioSnapshot rows from current holdings.

    Holdings only describe today's positions, so every snapshot (past or
    present) values today's share counts; ``total_cost`` is the same on
    every day for the same reason.
    """

    def __init__(self, quote_service: QuoteService, clock: Optional[Clock] = None):
        self._quotes = quote_service
        self._clock = clock or Clock()

    @staticmethod
    def load_holdings(db: Session, user_id: str) -> list[Holding]:
        """All holdings across all of the user's portfolios."""
        portfolios = (
            db.query(Portfolio)
            .options(selectinload(Portfolio.holdings))
            .filter(Portfolio.user_id == user_id)
            .all()
        )
        return [h for p in portfolios for h in p.holdings]

    def record_daily_snapshot(self, db: Session, user_id: str) -> Optional[PortfolioSnapshot]:
        """Value the user's holdings at live prices and upsert today's snapshot.

        Holdings without a quote count at cost with no day movement.

        Returns:
            The snapshot, or None when the user holds nothing.
        """
        holdings = self.load_holdings(db, user_id)
        if not holdings:
            return None

        quotes = self._quotes.get_quotes(db, unique_symbols(h.symbol for h in holdings))

        totals = DayTotals()
        for holding in holdings:
            quote = quotes.get(normalize_symbol(holding.symbol))
            if quote is not None:
                price = quote.price
                change_amount = quote.change_amount or 0.0
            else:
                price = holding.avg_cost_basis
                change_amount = 0.0
            totals.total_value += holding.shares * price
            totals.total_cost += holding.shares * holding.avg_cost_basis
            totals.day_gain += holding.shares * change_amount

        today = self._clock.today()
        try:
            snapshot = self._upsert_snapshot(db, user_id, today, totals)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

        logger.info("Recorded snapshot for user %s: $%.2f", user_id, totals.total_value)
        return snapshot

    def generate_historical_snapshots(
        self, db: Session, user_id: str, days: int = 365
    ) -> list[PortfolioSnapshot]:
        """Backfill one snapshot per day from stored daily closes.

        Walks ``today - days`` through ``today``, oldest first. Per holding
        and day D:
        - a stored bar for D gives the value; the bar for D-1 (if stored)
          gives the day-gain baseline, otherwise the baseline is D's close
        - with no bar for D, value and baseline are both the cost basis

        Only days where at least one holding had a bar are written, plus
        the final day so the series always ends today. A day whose upsert
        fails is skipped.

        Returns:
            The snapshots written, oldest first.
        """
        holdings = self.load_holdings(db, user_id)
        if not holdings:
            return []

        today = self._clock.today()
        start = today - timedelta(days=days)
        closes = self._load_closes(
            db, unique_symbols(h.symbol for h in holdings), start - timedelta(days=1), today
        )

        written: list[PortfolioSnapshot] = []
        for offset in range(days, -1, -1):
            day = today - timedelta(days=offset)
            prev_day = day - timedelta(days=1)
            totals = DayTotals()
            baseline = 0.0
            has_data = False

            for holding in holdings:
                symbol_closes = closes.get(normalize_symbol(holding.symbol), {})
                cost = holding.shares * holding.avg_cost_basis
                totals.total_cost += cost

                close = symbol_closes.get(day)
                if close is None:
                    totals.total_value += cost
                    baseline += cost
                    continue

                has_data = True
                value = holding.shares * close
                totals.total_value += value
                prev_close = symbol_closes.get(prev_day)
                baseline += holding.shares * prev_close if prev_close is not None else value

            if not has_data and offset != 0:
                continue

            totals.day_gain = totals.total_value - baseline
            try:
                with db.begin_nested():
                    snapshot = self._upsert_snapshot(db, user_id, day, totals)
                written.append(snapshot)
            except SQLAlchemyError:
                logger.warning(
                    "Skipping snapshot for user %s on %s", user_id, day, exc_info=True
                )

        db.commit()
        logger.info("Generated %d historical snapshots for user %s", len(written), user_id)
        return written

    def get_performance_history(
        self, db: Session, user_id: str, days: int = 365
    ) -> list[PortfolioSnapshot]:
        """Snapshots with ``date >= today - days``, oldest first."""
        start = self._clock.today() - timedelta(days=days)
        return (
            db.query(PortfolioSnapshot)
            .filter(PortfolioSnapshot.user_id == user_id, PortfolioSnapshot.date >= start)
            .order_by(PortfolioSnapshot.date.asc())
            .all()
        )

    def record_all_user_snapshots(self, db: Session) -> SnapshotRunSummary:
        """Record today's snapshot for every active user.

        Meant to be triggered once a day by a scheduler. A failure for one
        user is logged and does not stop the run.
        """
        user_ids = [
            uid for (uid,) in db.query(User.id).filter(User.is_active.is_(True)).all()
        ]
        logger.info("Recording daily snapshots for %d users", len(user_ids))

        summary = SnapshotRunSummary()
        for user_id in user_ids:
            summary.users_processed += 1
            try:
                if self.record_daily_snapshot(db, user_id) is not None:
                    summary.snapshots_recorded += 1
            except Exception as e:
                db.rollback()
                logger.error("Snapshot failed for user %s", user_id, exc_info=True)
                summary.errors.append(f"{user_id}: {e}")

        return summary

    @staticmethod
    def _load_closes(
        db: Session, symbols: list[str], start: date, end: date
    ) -> dict[str, dict[date, float]]:
        """Stored closes per symbol and day within ``[start, end]``."""
        closes: dict[str, dict[date, float]] = defaultdict(dict)
        if not symbols:
            return closes

        rows = (
            db.query(StockHistory.symbol, StockHistory.date, StockHistory.close)
            .filter(
                StockHistory.symbol.in_(symbols),
                StockHistory.date >= start,
                StockHistory.date <= end,
            )
            .order_by(StockHistory.date.asc())
            .all()
        )
        for symbol, day, close in rows:
            closes[symbol][day] = close
        return closes

    @staticmethod
    def _upsert_snapshot(
        db: Session, user_id: str, day: date, totals: DayTotals
    ) -> PortfolioSnapshot:
        snapshot = (
            db.query(PortfolioSnapshot)
            .filter(PortfolioSnapshot.user_id == user_id, PortfolioSnapshot.date == day)
            .first()
        )
        if snapshot is None:
            snapshot = PortfolioSnapshot(user_id=user_id, date=day)
            db.add(snapshot)
        snapshot.total_value = totals.total_value
        snapshot.total_cost = totals.total_cost
        snapshot.day_gain = totals.day_gain
        db.flush()
        return snapshot
