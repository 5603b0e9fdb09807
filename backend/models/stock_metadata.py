"""StockMetadata model - freshness tracking for a symbol's stored history."""

from sqlalchemy import Column, Date, DateTime, String

from database import Base


class StockMetadata(Base):
    """Per-symbol metadata.

    ``last_fetched_at`` is the only signal used to decide whether the
    stored history for a symbol is fresh enough to serve without a refetch.
    """

    __tablename__ = "stock_metadata"

    symbol = Column(String(16), primary_key=True)
    name = Column(String, nullable=True)
    history_start_date = Column(Date, nullable=True)
    history_end_date = Column(Date, nullable=True)
    last_fetched_at = Column(DateTime, nullable=True)
