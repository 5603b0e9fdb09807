"""Unit tests for the provider exception hierarchy."""

import pytest

from integrations.exceptions import (
    ProviderAPIError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderDataError,
    ProviderError,
    ProviderRateLimitError,
)


class TestExceptionHierarchy:
    """All provider exceptions are caught by except ProviderError."""

    @pytest.mark.parametrize(
        "exc",
        [
            ProviderAuthError("auth", provider_name="fmp"),
            ProviderConnectionError("conn", provider_name="finnhub"),
            ProviderAPIError("api", provider_name="twelvedata", status_code=400),
            ProviderRateLimitError("slow down", provider_name="alphavantage"),
            ProviderDataError("data", provider_name="yahoo"),
        ],
    )
    def test_catch_all_provider_errors(self, exc):
        with pytest.raises(ProviderError):
            raise exc

    def test_message_and_provider_name(self):
        exc = ProviderDataError("bad json", provider_name="fmp")
        assert str(exc) == "bad json"
        assert exc.provider_name == "fmp"


class TestProviderAPIErrorRetriable:
    @pytest.mark.parametrize("status,expected", [(429, True), (500, True), (503, True), (400, False), (401, False)])
    def test_by_status(self, status, expected):
        assert ProviderAPIError("x", status_code=status).retriable is expected

    def test_none_status_is_not_retriable(self):
        assert ProviderAPIError("unknown").retriable is False

    def test_status_code_stored(self):
        assert ProviderAPIError("error", status_code=403).status_code == 403
