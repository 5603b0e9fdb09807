"""Shared plumbing for the REST market data providers.

Each provider subclass supplies its base URL, the name of its API-key
query parameter and the payload mapping; this module owns the HTTP
client, the error translation and the "never raise past the adapter"
boundary.
"""

import logging
from typing import Any, Callable, Optional, TypeVar

import httpx

from integrations.exceptions import (
    ProviderAPIError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderDataError,
    ProviderError,
)
from integrations.user_agents import UserAgentPool
from utils.clock import Clock

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_QUOTE_TIMEOUT = 10.0
DEFAULT_HISTORY_TIMEOUT = 30.0


def call_safely(
    provider_name: str,
    operation: str,
    symbol: str,
    fetch: Callable[[], T],
    default: T,
) -> T:
    """Run ``fetch`` and turn any failure into ``default``.

    Provider errors are logged as one-line warnings; anything unexpected
    (a payload shape nobody anticipated) is logged with a traceback.
    """
    try:
        return fetch()
    except ProviderError as e:
        logger.warning("%s: %s failed for %s: %s", provider_name, operation, symbol, e)
    except Exception:
        logger.warning(
            "%s: unexpected error during %s for %s",
            provider_name, operation, symbol, exc_info=True,
        )
    return default


class RestMarketDataClient:
    """Base class for API-key authenticated JSON market data providers."""

    name: str = ""
    base_url: str = ""
    api_key_param: str = "apikey"

    def __init__(
        self,
        api_key: str = "",
        user_agents: Optional[UserAgentPool] = None,
        quote_timeout: float = DEFAULT_QUOTE_TIMEOUT,
        history_timeout: float = DEFAULT_HISTORY_TIMEOUT,
        http_client: Optional[httpx.Client] = None,
        clock: Optional[Clock] = None,
    ):
        """Initialize the client.

        Args:
            api_key: Provider API key. Without one the provider reports
                     itself as not configured and is left out of the chains.
            user_agents: Shared User-Agent rotation pool.
            quote_timeout: Request timeout in seconds for quote calls.
            history_timeout: Request timeout in seconds for history calls.
            http_client: Pre-built client (tests); one is created otherwise.
            clock: Supplies the UTC day that ends history windows.
        """
        self._api_key = api_key or ""
        self._user_agents = user_agents or UserAgentPool()
        self.quote_timeout = quote_timeout
        self.history_timeout = history_timeout
        self._client = http_client or httpx.Client(base_url=self.base_url)
        self._clock = clock or Clock()

    @property
    def provider_name(self) -> str:
        return self.name

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def _get_json(self, path: str, params: dict[str, Any], timeout: float) -> Any:
        """GET ``path`` with the API key attached and return the decoded body.

        Raises:
            ProviderAuthError: No key configured, or HTTP 401/403.
            ProviderConnectionError: Timeout or transport failure.
            ProviderAPIError: Any other HTTP error status.
            ProviderDataError: Body is not JSON.
        """
        if not self._api_key:
            raise ProviderAuthError("API key not configured", self.name)

        query = dict(params)
        query[self.api_key_param] = self._api_key

        try:
            response = self._client.get(
                path,
                params=query,
                headers=self._user_agents.headers(),
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            raise ProviderConnectionError(f"timed out after {timeout}s", self.name) from e
        except httpx.TransportError as e:
            raise ProviderConnectionError(f"connection failed: {e}", self.name) from e

        if response.status_code in (401, 403):
            raise ProviderAuthError(
                f"HTTP {response.status_code} (check API key)", self.name
            )
        if response.status_code >= 400:
            raise ProviderAPIError(
                f"HTTP {response.status_code}",
                self.name,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderDataError("response body is not valid JSON", self.name) from e
