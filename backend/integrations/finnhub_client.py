"""Finnhub market data provider (quotes only)."""

from typing import Optional

from integrations.exceptions import ProviderDataError
from integrations.market_data_protocol import QuoteData
from integrations.parsing_utils import to_float
from integrations.rest_client import RestMarketDataClient, call_safely


class FinnhubClient(RestMarketDataClient):
    """Live quotes from finnhub.io.

    The quote endpoint uses single-letter keys (``c`` current, ``pc``
    previous close, ``d`` change, ``dp`` change percent) and answers
    unknown symbols with all-zero values rather than an error. It does
    not return a company name, volume or market cap.
    """

    name = "finnhub"
    base_url = "https://finnhub.io/api/v1"
    api_key_param = "token"

    def get_quote(self, symbol: str) -> Optional[QuoteData]:
        return call_safely(self.name, "quote", symbol, lambda: self._fetch_quote(symbol), None)

    def _fetch_quote(self, symbol: str) -> Optional[QuoteData]:
        data = self._get_json("/quote", {"symbol": symbol}, self.quote_timeout)

        if not isinstance(data, dict):
            raise ProviderDataError("unexpected quote payload", self.name)
        if "error" in data:
            raise ProviderDataError(str(data["error"]), self.name)

        price = to_float(data.get("c"))
        if price is None or price <= 0:
            return None

        return QuoteData(
            symbol=symbol,
            name=symbol,
            price=price,
            previous_close=to_float(data.get("pc")),
            open=to_float(data.get("o")),
            high=to_float(data.get("h")),
            low=to_float(data.get("l")),
            change_amount=to_float(data.get("d")),
            change_percent=to_float(data.get("dp")),
            source=self.name,
        )
