"""Mock market data providers and helpers for testing."""

from datetime import date
from typing import Optional

from integrations.market_data_protocol import HistoryBar, QuoteData


class RecordingSleep:
    """Stands in for time.sleep and records every requested pause."""

    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class MockQuoteProvider:
    """Mock quote provider backed by an in-memory dict.

    Implements the QuoteProvider protocol and records every symbol it is
    asked for.
    """

    def __init__(
        self,
        name: str = "mock",
        quotes: Optional[dict[str, QuoteData]] = None,
        should_fail: bool = False,
        configured: bool = True,
    ):
        self._name = name
        self._quotes = quotes or {}
        self._should_fail = should_fail
        self._configured = configured
        self.calls: list[str] = []

    @property
    def provider_name(self) -> str:
        return self._name

    def is_configured(self) -> bool:
        return self._configured

    def get_quote(self, symbol: str) -> Optional[QuoteData]:
        self.calls.append(symbol)
        if self._should_fail:
            raise Exception("Mock quote provider error")
        return self._quotes.get(symbol)


class MockHistoryProvider:
    """Mock history provider backed by an in-memory dict."""

    def __init__(
        self,
        name: str = "mock",
        bars: Optional[dict[str, list[HistoryBar]]] = None,
        should_fail: bool = False,
    ):
        self._name = name
        self._bars = bars or {}
        self._should_fail = should_fail
        self.calls: list[tuple[str, int]] = []

    @property
    def provider_name(self) -> str:
        return self._name

    def is_configured(self) -> bool:
        return True

    def get_history(self, symbol: str, days: int) -> list[HistoryBar]:
        self.calls.append((symbol, days))
        if self._should_fail:
            raise Exception("Mock history provider error")
        return list(self._bars.get(symbol, []))


def make_quote(
    symbol: str,
    price: float,
    change_amount: float = 0.0,
    name: Optional[str] = None,
    source: str = "mock",
) -> QuoteData:
    return QuoteData(
        symbol=symbol,
        name=name or f"{symbol} Inc.",
        price=price,
        previous_close=price - change_amount,
        open=price,
        high=price,
        low=price,
        volume=1_000_000,
        change_amount=change_amount,
        change_percent=(change_amount / (price - change_amount) * 100) if price != change_amount else 0.0,
        source=source,
    )


def make_bars(symbol: str, closes: dict[date, float]) -> list[HistoryBar]:
    """Daily bars from a day -> close mapping, in the mapping's order."""
    return [
        HistoryBar(
            symbol=symbol,
            date=day,
            open=close,
            high=close,
            low=close,
            close=close,
            adj_close=close,
            volume=500,
        )
        for day, close in closes.items()
    ]
