"""Financial Modeling Prep (FMP) market data provider."""

import logging
from datetime import timedelta
from typing import Optional

from integrations.exceptions import ProviderAuthError, ProviderDataError
from integrations.market_data_protocol import HistoryBar, QuoteData
from integrations.parsing_utils import parse_date, parse_percent, to_float, to_int
from integrations.rest_client import RestMarketDataClient, call_safely

logger = logging.getLogger(__name__)


class FMPClient(RestMarketDataClient):
    """Quotes and daily history from financialmodelingprep.com.

    Both endpoints return a JSON list/object on success and an
    ``{"Error Message": ...}`` object on failure (including bad keys,
    which FMP reports with HTTP 200 on some plans).
    """

    name = "fmp"
    base_url = "https://financialmodelingprep.com/api/v3"
    api_key_param = "apikey"

    def get_quote(self, symbol: str) -> Optional[QuoteData]:
        return call_safely(self.name, "quote", symbol, lambda: self._fetch_quote(symbol), None)

    def get_history(self, symbol: str, days: int) -> list[HistoryBar]:
        return call_safely(
            self.name, "history", symbol, lambda: self._fetch_history(symbol, days), []
        )

    def _check_envelope(self, data) -> None:
        if isinstance(data, dict) and "Error Message" in data:
            message = str(data["Error Message"])
            if "apikey" in message.lower() or "api key" in message.lower():
                raise ProviderAuthError(message, self.name)
            raise ProviderDataError(message, self.name)

    def _fetch_quote(self, symbol: str) -> Optional[QuoteData]:
        data = self._get_json(f"/quote/{symbol}", {}, self.quote_timeout)
        self._check_envelope(data)

        if not isinstance(data, list):
            raise ProviderDataError(f"unexpected quote payload type {type(data).__name__}", self.name)
        if not data:
            return None

        row = data[0]
        price = to_float(row.get("price"))
        if price is None:
            return None

        return QuoteData(
            symbol=row.get("symbol") or symbol,
            name=row.get("name") or symbol,
            price=price,
            previous_close=to_float(row.get("previousClose")),
            open=to_float(row.get("open")),
            high=to_float(row.get("dayHigh")),
            low=to_float(row.get("dayLow")),
            volume=to_int(row.get("volume")),
            market_cap=to_int(row.get("marketCap")),
            change_amount=to_float(row.get("change")),
            change_percent=parse_percent(row.get("changesPercentage")),
            source=self.name,
        )

    def _fetch_history(self, symbol: str, days: int) -> list[HistoryBar]:
        end_date = self._clock.today()
        start_date = end_date - timedelta(days=days)
        data = self._get_json(
            f"/historical-price-full/{symbol}",
            {"from": start_date.isoformat(), "to": end_date.isoformat()},
            self.history_timeout,
        )
        self._check_envelope(data)

        if not isinstance(data, dict):
            raise ProviderDataError("unexpected history payload", self.name)

        bars: list[HistoryBar] = []
        for row in data.get("historical") or []:
            bar_date = parse_date(row.get("date"))
            close = to_float(row.get("close"))
            if bar_date is None or close is None:
                continue
            bars.append(
                HistoryBar(
                    symbol=symbol,
                    date=bar_date,
                    open=to_float(row.get("open"), 0.0),
                    high=to_float(row.get("high"), 0.0),
                    low=to_float(row.get("low"), 0.0),
                    close=close,
                    adj_close=to_float(row.get("adjClose"), close),
                    volume=to_int(row.get("volume"), 0),
                )
            )

        # FMP lists newest first
        bars.sort(key=lambda b: b.date)
        logger.info("FMP: %d daily bars for %s", len(bars), symbol)
        return bars
