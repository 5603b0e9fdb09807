"""External market data integrations.

This package contains:
- Market data protocol: canonical quote/daily-bar shapes and provider interfaces
- Provider registry: builds the fixed quote and history provider chains
- Provider clients: FMP, Finnhub, Twelve Data, Yahoo Finance, Alpha Vantage
"""

from integrations.market_data_protocol import (
    HistoryBar,
    HistoryProvider,
    QuoteData,
    QuoteProvider,
)
from integrations.provider_registry import MarketDataProviderRegistry

__all__ = [
    "HistoryBar",
    "HistoryProvider",
    "MarketDataProviderRegistry",
    "QuoteData",
    "QuoteProvider",
]
