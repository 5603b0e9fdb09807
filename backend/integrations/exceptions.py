"""Typed exception hierarchy for market data provider errors.

Adapters raise these internally so failures can be logged with the right
detail, then convert them to a "no data" result at their public boundary.
Nothing outside ``integrations`` should ever see one.
"""


class ProviderError(Exception):
    """Base exception for all provider-related errors.

    Carries the provider name so callers can identify which provider failed.
    """

    def __init__(self, message: str, provider_name: str = ""):
        self.provider_name = provider_name
        super().__init__(message)


class ProviderAuthError(ProviderError):
    """API key missing, expired, or invalid (HTTP 401/403)."""

    pass


class ProviderConnectionError(ProviderError):
    """Network failures — timeouts, DNS resolution, connection refused."""

    pass


class ProviderAPIError(ProviderError):
    """HTTP 4xx/5xx responses from the provider API."""

    def __init__(
        self,
        message: str,
        provider_name: str = "",
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, provider_name)

    @property
    def retriable(self) -> bool:
        """429 (rate limit) and 5xx errors are generally retriable."""
        if self.status_code is None:
            return False
        return self.status_code == 429 or self.status_code >= 500


class ProviderRateLimitError(ProviderError):
    """Rate limit reported inside a 200 response body (e.g. Alpha Vantage "Note")."""

    pass


class ProviderDataError(ProviderError):
    """Malformed or unparseable response, or a provider error envelope."""

    pass
