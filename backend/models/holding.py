"""Holding model - current position in a symbol within a portfolio."""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid


class Holding(Base):
    """Shares held in a symbol and their average cost basis.

    Only the current position is stored; past share counts are not
    tracked, so historical valuations use today's quantities.
    """

    __tablename__ = "holdings"
    __table_args__ = (
        UniqueConstraint("portfolio_id", "symbol", name="uix_holding_portfolio_symbol"),
        CheckConstraint("shares > 0", name="ck_holding_shares_positive"),
        CheckConstraint("avg_cost_basis >= 0", name="ck_holding_cost_basis_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    portfolio_id = Column(
        String(36), ForeignKey("portfolios.id"), nullable=False, index=True
    )
    symbol = Column(String(16), nullable=False)
    shares = Column(Float, nullable=False)
    avg_cost_basis = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    portfolio = relationship("Portfolio", back_populates="holdings")
