"""Test fixtures and sample data."""
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import Session

from models import Holding, Portfolio, PortfolioSnapshot, StockHistory, StockMetadata, StockQuote, User

# Monday; the previous Friday is 2024-06-14
NOW = datetime(2024, 6, 17, 15, 30, tzinfo=timezone.utc)


def create_user(db: Session, email: str = "investor@example.com", is_active: bool = True) -> User:
    user = User(email=email, is_active=is_active)
    db.add(user)
    db.commit()
    return user


def create_portfolio(db: Session, user: User, name: str = "Brokerage") -> Portfolio:
    portfolio = Portfolio(user_id=user.id, name=name)
    db.add(portfolio)
    db.commit()
    return portfolio


def create_holding(
    db: Session,
    portfolio: Portfolio,
    symbol: str,
    shares: float,
    avg_cost_basis: float,
) -> Holding:
    holding = Holding(
        portfolio_id=portfolio.id,
        symbol=symbol,
        shares=shares,
        avg_cost_basis=avg_cost_basis,
    )
    db.add(holding)
    db.commit()
    return holding


def store_history(
    db: Session,
    symbol: str,
    closes: dict[date, float],
    fetched_at: datetime | None = None,
) -> None:
    """Store daily closes for a symbol (and its metadata when ``fetched_at`` is given).

    Args:
        db: Database session
        symbol: Ticker symbol
        closes: Mapping of day -> close; open/high/low mirror the close
        fetched_at: Value for StockMetadata.last_fetched_at, or None to
                    leave metadata alone
    """
    for day, close in closes.items():
        db.add(
            StockHistory(
                symbol=symbol,
                date=day,
                open=close,
                high=close,
                low=close,
                close=close,
                adj_close=close,
                volume=1000,
            )
        )
    if fetched_at is not None:
        db.add(
            StockMetadata(
                symbol=symbol,
                history_start_date=min(closes) if closes else None,
                history_end_date=max(closes) if closes else None,
                last_fetched_at=fetched_at,
            )
        )
    db.commit()


def store_quote(
    db: Session,
    symbol: str,
    price: float,
    updated_at: datetime,
    change_amount: float = 0.0,
    name: str | None = None,
) -> StockQuote:
    row = StockQuote(
        symbol=symbol,
        name=name or symbol,
        price=price,
        previous_close=price - change_amount,
        change_amount=change_amount,
        source="cached",
        updated_at=updated_at,
    )
    db.add(row)
    db.commit()
    return row


def store_snapshots(db: Session, user: User, days: list[date], value: float = 100.0) -> None:
    for day in days:
        db.add(
            PortfolioSnapshot(
                user_id=user.id,
                date=day,
                total_value=value,
                total_cost=value,
                day_gain=0.0,
            )
        )
    db.commit()


def daily_closes(end: date, values: list[float]) -> dict[date, float]:
    """Consecutive calendar-day closes ending on ``end`` (oldest value first)."""
    start = end - timedelta(days=len(values) - 1)
    return {start + timedelta(days=i): v for i, v in enumerate(values)}


# Pytest fixtures
@pytest.fixture
def user(db):
    """Create an active test user."""
    return create_user(db)


@pytest.fixture
def portfolio(db, user):
    """Create a portfolio owned by the test user."""
    return create_portfolio(db, user)


@pytest.fixture
def holding(db, portfolio):
    """10 shares of AAPL at a $150 average cost."""
    return create_holding(db, portfolio, "AAPL", 10, 150.0)
