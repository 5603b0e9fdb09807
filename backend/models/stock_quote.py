"""StockQuote model - latest quote per symbol, overwritten on refresh."""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, DateTime, Float, String

from database import Base


class StockQuote(Base):
    """Cached live quote for a symbol.

    One row per symbol. The quote service overwrites it in place whenever
    a provider returns a fresh quote; no quote history is kept.
    """

    __tablename__ = "stock_quotes"

    symbol = Column(String(16), primary_key=True)
    name = Column(String, nullable=True)
    price = Column(Float, nullable=False)
    previous_close = Column(Float, nullable=True)
    open = Column(Float, nullable=True)
    high = Column(Float, nullable=True)
    low = Column(Float, nullable=True)
    volume = Column(BigInteger, nullable=True)
    market_cap = Column(BigInteger, nullable=True)
    change_amount = Column(Float, nullable=True)
    change_percent = Column(Float, nullable=True)
    source = Column(String, nullable=True)  # e.g., "fmp", "finnhub", "yahoo"
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
