"""Pydantic schemas for portfolio performance charting."""

from datetime import date

from pydantic import BaseModel

from models import PortfolioSnapshot


class PerformancePoint(BaseModel):
    """One point of the portfolio value chart."""

    date: date
    value: float
    cost: float
    day_gain: float
    total_gain: float
    total_gain_percent: float  # 0 when cost is 0

    @classmethod
    def from_snapshot(cls, snapshot: PortfolioSnapshot) -> "PerformancePoint":
        total_gain = snapshot.total_value - snapshot.total_cost
        percent = total_gain / snapshot.total_cost * 100 if snapshot.total_cost > 0 else 0.0
        return cls(
            date=snapshot.date,
            value=snapshot.total_value,
            cost=snapshot.total_cost,
            day_gain=snapshot.day_gain,
            total_gain=total_gain,
            total_gain_percent=percent,
        )


class RefreshResult(BaseModel):
    """Outcome of refreshing the stored history behind a user's holdings."""

    symbols_refreshed: list[str] = []
    symbols_without_data: list[str] = []
    errors: list[str] = []
    snapshots_written: int = 0
