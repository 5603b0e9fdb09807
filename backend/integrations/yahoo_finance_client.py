"""Yahoo Finance market data provider implementation."""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import timedelta
from typing import Optional

import yfinance as yf

from integrations.exceptions import ProviderConnectionError, ProviderDataError
from integrations.market_data_protocol import HistoryBar, QuoteData
from integrations.parsing_utils import to_float, to_int
from integrations.rest_client import DEFAULT_HISTORY_TIMEOUT, DEFAULT_QUOTE_TIMEOUT, call_safely
from utils.clock import Clock

logger = logging.getLogger(__name__)


class YahooFinanceClient:
    """Market data provider using Yahoo Finance (yfinance library).

    Needs no API key, so it is always configured. yfinance manages its own
    HTTP session and cookies; requests are not sent through the shared
    User-Agent pool.

    ``Ticker.info`` takes no timeout, so quote lookups run on a worker
    thread and are abandoned after ``quote_timeout`` seconds.
    """

    def __init__(
        self,
        quote_timeout: float = DEFAULT_QUOTE_TIMEOUT,
        history_timeout: float = DEFAULT_HISTORY_TIMEOUT,
        clock: Optional[Clock] = None,
    ):
        self.quote_timeout = quote_timeout
        self.history_timeout = history_timeout
        self._clock = clock or Clock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="yahoo-quote")

    @property
    def provider_name(self) -> str:
        return "yahoo"

    def is_configured(self) -> bool:
        return True

    def close(self) -> None:
        """Stop the quote worker without waiting on a stuck request."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    def get_quote(self, symbol: str) -> Optional[QuoteData]:
        return call_safely(
            self.provider_name, "quote", symbol, lambda: self._fetch_quote(symbol), None
        )

    def get_history(self, symbol: str, days: int) -> list[HistoryBar]:
        return call_safely(
            self.provider_name, "history", symbol,
            lambda: self._fetch_history(symbol, days), [],
        )

    def _fetch_quote(self, symbol: str) -> Optional[QuoteData]:
        future = self._executor.submit(lambda: yf.Ticker(symbol).info)
        try:
            info = future.result(timeout=self.quote_timeout)
        except FutureTimeoutError as e:
            future.cancel()
            raise ProviderConnectionError(
                f"timed out after {self.quote_timeout}s", self.provider_name
            ) from e
        if not isinstance(info, dict):
            raise ProviderDataError("unexpected info payload", self.provider_name)

        price = to_float(info.get("regularMarketPrice"))
        if not price:
            return None

        return QuoteData(
            symbol=info.get("symbol") or symbol,
            name=info.get("shortName") or info.get("longName") or symbol,
            price=price,
            previous_close=to_float(info.get("regularMarketPreviousClose")),
            open=to_float(info.get("regularMarketOpen")),
            high=to_float(info.get("regularMarketDayHigh")),
            low=to_float(info.get("regularMarketDayLow")),
            volume=to_int(info.get("regularMarketVolume")),
            market_cap=to_int(info.get("marketCap")),
            change_amount=to_float(info.get("regularMarketChange")),
            change_percent=to_float(info.get("regularMarketChangePercent")),
            source=self.provider_name,
        )

    def _fetch_history(self, symbol: str, days: int) -> list[HistoryBar]:
        end_date = self._clock.today()
        start_date = end_date - timedelta(days=days)

        # yfinance end is exclusive, so add one day
        df = yf.Ticker(symbol).history(
            start=start_date.isoformat(),
            end=(end_date + timedelta(days=1)).isoformat(),
            interval="1d",
            auto_adjust=False,
            timeout=self.history_timeout,
        )

        if df is None or df.empty or "Close" not in df.columns:
            return []

        has_adj_close = "Adj Close" in df.columns
        bars: list[HistoryBar] = []
        for ts, row in df.iterrows():
            close = to_float(row["Close"])
            if close is None:
                continue
            bars.append(
                HistoryBar(
                    symbol=symbol,
                    date=ts.date(),
                    open=to_float(row.get("Open"), 0.0),
                    high=to_float(row.get("High"), 0.0),
                    low=to_float(row.get("Low"), 0.0),
                    close=close,
                    adj_close=to_float(row["Adj Close"], close) if has_adj_close else close,
                    volume=to_int(row.get("Volume"), 0),
                )
            )

        bars.sort(key=lambda b: b.date)
        logger.info("Yahoo Finance: %d daily bars for %s", len(bars), symbol)
        return bars
