"""Unit tests for the shared REST client plumbing (mocked httpx)."""

import random
from unittest.mock import MagicMock, patch

import httpx
import pytest

from integrations.exceptions import (
    ProviderAPIError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderDataError,
)
from integrations.rest_client import RestMarketDataClient, call_safely
from integrations.user_agents import UserAgentPool


class DummyClient(RestMarketDataClient):
    name = "dummy"
    base_url = "https://example.test"
    api_key_param = "token"


def _response(status_code=200, payload=None, json_error=False):
    response = MagicMock()
    response.status_code = status_code
    if json_error:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def client():
    c = DummyClient(
        api_key="secret",
        user_agents=UserAgentPool(["agent-a"], rng=random.Random(0)),
        quote_timeout=4.0,
    )
    yield c
    c.close()


class TestConfiguration:
    def test_configured_with_key(self, client):
        assert client.is_configured()
        assert client.provider_name == "dummy"

    def test_not_configured_without_key(self):
        c = DummyClient()
        assert not c.is_configured()
        with pytest.raises(ProviderAuthError):
            c._get_json("/x", {}, 1.0)
        c.close()


class TestGetJson:
    def test_sends_key_user_agent_and_timeout(self, client):
        with patch.object(client._client, "get", return_value=_response(payload={"ok": 1})) as mock_get:
            data = client._get_json("/quote", {"symbol": "AAPL"}, client.quote_timeout)

        assert data == {"ok": 1}
        _, kwargs = mock_get.call_args
        assert kwargs["params"] == {"symbol": "AAPL", "token": "secret"}
        assert kwargs["headers"] == {"User-Agent": "agent-a"}
        assert kwargs["timeout"] == 4.0

    def test_does_not_mutate_caller_params(self, client):
        params = {"symbol": "AAPL"}
        with patch.object(client._client, "get", return_value=_response(payload={})):
            client._get_json("/quote", params, 1.0)

        assert params == {"symbol": "AAPL"}

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_statuses(self, client, status):
        with patch.object(client._client, "get", return_value=_response(status)):
            with pytest.raises(ProviderAuthError):
                client._get_json("/quote", {}, 1.0)

    def test_server_error(self, client):
        with patch.object(client._client, "get", return_value=_response(502)):
            with pytest.raises(ProviderAPIError) as exc_info:
                client._get_json("/quote", {}, 1.0)

        assert exc_info.value.status_code == 502

    def test_timeout(self, client):
        with patch.object(client._client, "get", side_effect=httpx.ReadTimeout("slow")):
            with pytest.raises(ProviderConnectionError, match="timed out"):
                client._get_json("/quote", {}, 1.0)

    def test_transport_failure(self, client):
        with patch.object(client._client, "get", side_effect=httpx.ConnectError("refused")):
            with pytest.raises(ProviderConnectionError):
                client._get_json("/quote", {}, 1.0)

    def test_invalid_json(self, client):
        with patch.object(client._client, "get", return_value=_response(json_error=True)):
            with pytest.raises(ProviderDataError):
                client._get_json("/quote", {}, 1.0)


class TestCallSafely:
    def test_returns_result(self):
        assert call_safely("p", "quote", "AAPL", lambda: 42, None) == 42

    def test_provider_error_becomes_default(self):
        def fail():
            raise ProviderAPIError("HTTP 500", "p", status_code=500)

        assert call_safely("p", "history", "AAPL", fail, []) == []

    def test_unexpected_error_becomes_default(self):
        def fail():
            raise KeyError("price")

        assert call_safely("p", "quote", "AAPL", fail, None) is None
