"""Twelve Data market data provider."""

import logging
from typing import Optional

from integrations.exceptions import (
    ProviderAuthError,
    ProviderDataError,
    ProviderRateLimitError,
)
from integrations.market_data_protocol import HistoryBar, QuoteData
from integrations.parsing_utils import parse_date, to_float, to_int
from integrations.rest_client import RestMarketDataClient, call_safely

logger = logging.getLogger(__name__)

# time_series caps outputsize at 5000 rows
_MAX_OUTPUT_SIZE = 5000


class TwelveDataClient(RestMarketDataClient):
    """Quotes and daily history from api.twelvedata.com.

    Every numeric field arrives as a string. Errors come back with HTTP 200
    and a body of ``{"code": <int>, "message": ..., "status": "error"}``.
    """

    name = "twelvedata"
    base_url = "https://api.twelvedata.com"
    api_key_param = "apikey"

    def get_quote(self, symbol: str) -> Optional[QuoteData]:
        return call_safely(self.name, "quote", symbol, lambda: self._fetch_quote(symbol), None)

    def get_history(self, symbol: str, days: int) -> list[HistoryBar]:
        return call_safely(
            self.name, "history", symbol, lambda: self._fetch_history(symbol, days), []
        )

    def _check_envelope(self, data) -> None:
        if not isinstance(data, dict):
            raise ProviderDataError("unexpected payload", self.name)
        if "code" not in data and data.get("status") != "error":
            return
        code = data.get("code")
        message = str(data.get("message") or "error response")
        if code == 429:
            raise ProviderRateLimitError(message, self.name)
        if code in (401, 403):
            raise ProviderAuthError(message, self.name)
        raise ProviderDataError(f"code {code}: {message}", self.name)

    def _fetch_quote(self, symbol: str) -> Optional[QuoteData]:
        data = self._get_json("/quote", {"symbol": symbol}, self.quote_timeout)
        self._check_envelope(data)

        price = to_float(data.get("close"))
        if price is None:
            return None

        # Change is derived from close and previous close rather than
        # trusting the string "change" field
        previous_close = to_float(data.get("previous_close"))
        change_amount = None
        change_percent = None
        if previous_close:
            change_amount = price - previous_close
            change_percent = change_amount / previous_close * 100

        return QuoteData(
            symbol=data.get("symbol") or symbol,
            name=data.get("name") or symbol,
            price=price,
            previous_close=previous_close,
            open=to_float(data.get("open")),
            high=to_float(data.get("high")),
            low=to_float(data.get("low")),
            volume=to_int(data.get("volume")) or None,
            change_amount=change_amount,
            change_percent=change_percent,
            source=self.name,
        )

    def _fetch_history(self, symbol: str, days: int) -> list[HistoryBar]:
        data = self._get_json(
            "/time_series",
            {
                "symbol": symbol,
                "interval": "1day",
                "outputsize": min(max(days, 1), _MAX_OUTPUT_SIZE),
            },
            self.history_timeout,
        )
        self._check_envelope(data)

        bars: list[HistoryBar] = []
        for row in data.get("values") or []:
            bar_date = parse_date(row.get("datetime"))
            if bar_date is None:
                continue
            close = to_float(row.get("close"), 0.0)
            bars.append(
                HistoryBar(
                    symbol=symbol,
                    date=bar_date,
                    open=to_float(row.get("open"), 0.0),
                    high=to_float(row.get("high"), 0.0),
                    low=to_float(row.get("low"), 0.0),
                    close=close,
                    adj_close=close,
                    volume=to_int(row.get("volume"), 0),
                )
            )

        # Twelve Data returns newest first
        bars.sort(key=lambda b: b.date)
        logger.info("Twelve Data: %d daily bars for %s", len(bars), symbol)
        return bars
