"""Market data provider protocol definitions.

Defines the canonical quote and daily-bar shapes every provider adapter
normalizes into, and the interfaces the quote and history services use
to walk their provider chains without knowing which provider is which.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Protocol


@dataclass
class QuoteData:
    """A normalized live quote for a symbol."""

    symbol: str
    name: str
    price: float
    previous_close: Optional[float] = None
    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    volume: Optional[int] = None
    market_cap: Optional[int] = None
    change_amount: Optional[float] = None  # Provider-supplied, not re-derived
    change_percent: Optional[float] = None
    source: str = ""  # e.g., "fmp", "finnhub", "yahoo"
    updated_at: Optional[datetime] = None  # Set once cached

    @property
    def is_valid(self) -> bool:
        return self.price is not None and self.price > 0


@dataclass
class HistoryBar:
    """One daily OHLCV bar. Sequences of bars are always oldest-first."""

    symbol: str
    date: date
    open: float
    high: float
    low: float
    close: float
    adj_close: float
    volume: int = 0


class QuoteProvider(Protocol):
    """Protocol for providers that can return a live quote.

    Implementations must never raise: transport errors, malformed payloads
    and provider error envelopes are logged and reported as ``None``.
    """

    @property
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'fmp')."""
        ...

    def is_configured(self) -> bool:
        """Return True when the provider has the credentials it needs."""
        ...

    def get_quote(self, symbol: str) -> Optional[QuoteData]:
        """Fetch a live quote, or None if the provider has no usable data."""
        ...


class HistoryProvider(Protocol):
    """Protocol for providers that can return daily history."""

    @property
    def provider_name(self) -> str:
        ...

    def is_configured(self) -> bool:
        ...

    def get_history(self, symbol: str, days: int) -> list[HistoryBar]:
        """Fetch up to ``days`` calendar days of daily bars, oldest first.

        Returns:
            Ascending list of bars; an empty list means "no data".
        """
        ...
