"""Unit tests for TwelveDataClient (mocked httpx)."""

from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from integrations.exceptions import ProviderAuthError, ProviderDataError, ProviderRateLimitError
from integrations.twelve_data_client import TwelveDataClient


@pytest.fixture
def client():
    c = TwelveDataClient(api_key="td-key")
    yield c
    c.close()


def _response(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


class TestGetQuote:
    def test_string_fields_parsed_and_change_derived(self, client):
        payload = {
            "symbol": "AAPL",
            "name": "Apple Inc",
            "open": "188.00000",
            "high": "190.30000",
            "low": "187.10000",
            "close": "190.00000",
            "volume": "51234567",
            "previous_close": "200.00000",
            "change": "999",
        }
        with patch.object(client._client, "get", return_value=_response(payload)):
            quote = client.get_quote("AAPL")

        assert quote.price == 190.0
        assert quote.name == "Apple Inc"
        assert quote.change_amount == pytest.approx(-10.0)
        assert quote.change_percent == pytest.approx(-5.0)
        assert quote.volume == 51234567

    def test_error_envelope_returns_none(self, client):
        payload = {"code": 404, "message": "symbol not found", "status": "error"}
        with patch.object(client._client, "get", return_value=_response(payload)):
            assert client.get_quote("NOPE") is None


class TestEnvelope:
    @pytest.mark.parametrize(
        "code,error",
        [(429, ProviderRateLimitError), (401, ProviderAuthError), (400, ProviderDataError)],
    )
    def test_codes_mapped(self, client, code, error):
        with pytest.raises(error):
            client._check_envelope({"code": code, "message": "x", "status": "error"})

    def test_success_payload_passes(self, client):
        client._check_envelope({"symbol": "AAPL", "close": "1"})


class TestGetHistory:
    def test_requests_daily_series_and_sorts_ascending(self, client):
        payload = {
            "meta": {"symbol": "AAPL", "interval": "1day"},
            "values": [
                {"datetime": "2024-06-14", "open": "1", "high": "2", "low": "0.5", "close": "1.5", "volume": "100"},
                {"datetime": "2024-06-13", "open": "1", "high": "2", "low": "0.5", "close": "1.2", "volume": "90"},
            ],
            "status": "ok",
        }
        with patch.object(client._client, "get", return_value=_response(payload)) as mock_get:
            bars = client.get_history("AAPL", 365)

        params = mock_get.call_args.kwargs["params"]
        assert params["interval"] == "1day"
        assert params["outputsize"] == 365
        assert [b.date for b in bars] == [date(2024, 6, 13), date(2024, 6, 14)]
        assert bars[0].close == 1.2
        assert bars[0].adj_close == 1.2

    def test_outputsize_capped(self, client):
        with patch.object(client._client, "get", return_value=_response({"values": []})) as mock_get:
            client.get_history("AAPL", 20000)

        assert mock_get.call_args.kwargs["params"]["outputsize"] == 5000

    def test_rate_limited_returns_empty(self, client):
        payload = {"code": 429, "message": "You have run out of API credits", "status": "error"}
        with patch.object(client._client, "get", return_value=_response(payload)):
            assert client.get_history("AAPL", 30) == []
