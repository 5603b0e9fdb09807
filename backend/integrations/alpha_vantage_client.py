"""Alpha Vantage market data provider (quotes only)."""

from typing import Optional

from integrations.exceptions import ProviderDataError, ProviderRateLimitError
from integrations.market_data_protocol import QuoteData
from integrations.parsing_utils import parse_percent, to_float, to_int
from integrations.rest_client import RestMarketDataClient, call_safely


class AlphaVantageClient(RestMarketDataClient):
    """Live quotes from the Alpha Vantage ``GLOBAL_QUOTE`` function.

    Fields are numbered strings (``"05. price"``) and the change percent
    carries a ``%`` suffix. Throttled calls still return HTTP 200, with a
    ``"Note"`` or ``"Information"`` key instead of data.
    """

    name = "alphavantage"
    base_url = "https://www.alphavantage.co"
    api_key_param = "apikey"

    def get_quote(self, symbol: str) -> Optional[QuoteData]:
        return call_safely(self.name, "quote", symbol, lambda: self._fetch_quote(symbol), None)

    def _fetch_quote(self, symbol: str) -> Optional[QuoteData]:
        data = self._get_json(
            "/query",
            {"function": "GLOBAL_QUOTE", "symbol": symbol},
            self.quote_timeout,
        )

        if not isinstance(data, dict):
            raise ProviderDataError("unexpected quote payload", self.name)
        for key in ("Note", "Information"):
            if key in data:
                raise ProviderRateLimitError(str(data[key]), self.name)
        if "Error Message" in data:
            raise ProviderDataError(str(data["Error Message"]), self.name)

        quote = data.get("Global Quote")
        if not quote:
            return None

        price = to_float(quote.get("05. price"))
        if price is None:
            return None

        return QuoteData(
            symbol=quote.get("01. symbol") or symbol,
            name=symbol,
            price=price,
            previous_close=to_float(quote.get("08. previous close")),
            open=to_float(quote.get("02. open")),
            high=to_float(quote.get("03. high")),
            low=to_float(quote.get("04. low")),
            volume=to_int(quote.get("06. volume")),
            change_amount=to_float(quote.get("09. change")),
            change_percent=parse_percent(quote.get("10. change percent")),
            source=self.name,
        )
