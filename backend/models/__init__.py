"""SQLAlchemy ORM models."""

from .holding import Holding
from .portfolio import Portfolio
from .portfolio_snapshot import PortfolioSnapshot
from .stock_history import StockHistory
from .stock_metadata import StockMetadata
from .stock_quote import StockQuote
from .user import User
from .utils import generate_uuid

__all__ = ["Holding", "Portfolio", "PortfolioSnapshot", "StockHistory", "StockMetadata", "StockQuote", "User", "generate_uuid"]
