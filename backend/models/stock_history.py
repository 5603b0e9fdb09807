"""StockHistory model - daily OHLCV bars per symbol."""

from sqlalchemy import BigInteger, Column, Date, Float, Integer, String, UniqueConstraint

from database import Base


class StockHistory(Base):
    """One daily bar for a symbol.

    The full set of rows for a symbol is replaced on every refetch
    (delete-then-insert in one transaction); rows are never merged.
    """

    __tablename__ = "stock_history"
    __table_args__ = (
        UniqueConstraint("symbol", "date", name="uix_stock_history_symbol_date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    symbol = Column(String(16), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    open = Column(Float, nullable=False, default=0.0)
    high = Column(Float, nullable=False, default=0.0)
    low = Column(Float, nullable=False, default=0.0)
    close = Column(Float, nullable=False, default=0.0)
    adj_close = Column(Float, nullable=False, default=0.0)
    volume = Column(BigInteger, nullable=False, default=0)
