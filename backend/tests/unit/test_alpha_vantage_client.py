"""Unit tests for AlphaVantageClient (mocked httpx)."""

from unittest.mock import MagicMock, patch

import pytest

from integrations.alpha_vantage_client import AlphaVantageClient


@pytest.fixture
def client():
    c = AlphaVantageClient(api_key="av-key")
    yield c
    c.close()


def _response(payload):
    response = MagicMock()
    response.status_code = 200
    response.json.return_value = payload
    return response


def test_maps_numbered_fields(client):
    payload = {
        "Global Quote": {
            "01. symbol": "IBM",
            "02. open": "168.0000",
            "03. high": "169.5000",
            "04. low": "167.2000",
            "05. price": "169.1200",
            "06. volume": "3171426",
            "07. latest trading day": "2024-06-14",
            "08. previous close": "168.3000",
            "09. change": "0.8200",
            "10. change percent": "0.4872%",
        }
    }
    with patch.object(client._client, "get", return_value=_response(payload)) as mock_get:
        quote = client.get_quote("IBM")

    assert mock_get.call_args.kwargs["params"]["function"] == "GLOBAL_QUOTE"
    assert quote.price == 169.12
    assert quote.previous_close == 168.3
    assert quote.volume == 3171426
    assert quote.change_amount == 0.82
    assert quote.change_percent == pytest.approx(0.4872)
    assert quote.source == "alphavantage"


@pytest.mark.parametrize(
    "payload",
    [
        {"Note": "Thank you for using Alpha Vantage! Our standard API rate limit is 25 requests per day."},
        {"Information": "The **demo** API key is for demo purposes only."},
        {"Error Message": "Invalid API call."},
        {"Global Quote": {}},
        {"Global Quote": {"01. symbol": "IBM", "05. price": ""}},
    ],
)
def test_unusable_payloads_return_none(client, payload):
    with patch.object(client._client, "get", return_value=_response(payload)):
        assert client.get_quote("IBM") is None
