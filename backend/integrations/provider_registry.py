"""Registry of market data providers and their fixed priority chains.

The registry is responsible for:
- Initializing each known provider once, with the shared User-Agent pool
- Skipping providers that have no API key configured
- Exposing the quote chain and the history chain in their fixed order
"""

import importlib
import logging
from typing import Optional

from integrations.market_data_protocol import HistoryProvider, QuoteProvider
from integrations.user_agents import UserAgentPool

logger = logging.getLogger(__name__)

# Each tuple is (provider_name, module_path, class_name, settings_key).
# settings_key is the API key setting, or None for keyless providers.
PROVIDER_DEFINITIONS: list[tuple[str, str, str, Optional[str]]] = [
    ("fmp", "integrations.fmp_client", "FMPClient", "FMP_API_KEY"),
    ("finnhub", "integrations.finnhub_client", "FinnhubClient", "FINNHUB_API_KEY"),
    ("twelvedata", "integrations.twelve_data_client", "TwelveDataClient", "TWELVE_DATA_API_KEY"),
    ("yahoo", "integrations.yahoo_finance_client", "YahooFinanceClient", None),
    ("alphavantage", "integrations.alpha_vantage_client", "AlphaVantageClient", "ALPHA_VANTAGE_API_KEY"),
]

ALL_PROVIDER_NAMES: list[str] = [name for name, _, _, _ in PROVIDER_DEFINITIONS]

# Quote providers, highest priority first.
QUOTE_PROVIDER_ORDER: list[str] = ["fmp", "finnhub", "twelvedata", "yahoo", "alphavantage"]

# History providers with the pause (seconds) taken before each attempt.
# Historical endpoints are throttled harder than quote endpoints.
HISTORY_PROVIDER_ORDER: list[tuple[str, float]] = [
    ("twelvedata", 1.0),
    ("yahoo", 2.0),
    ("fmp", 1.0),
]


class MarketDataProviderRegistry:
    """Holds the configured provider instances.

    Example:
        registry = MarketDataProviderRegistry()
        registry.initialize_default_providers(settings, UserAgentPool())
        for provider in registry.quote_chain():
            quote = provider.get_quote("AAPL")
    """

    def __init__(self):
        self._providers: dict[str, object] = {}

    def register_provider(self, provider) -> None:
        """Register a provider client under its ``provider_name``."""
        self._providers[provider.provider_name] = provider

    def get_provider(self, name: str):
        """Get a provider by name.

        Raises:
            ValueError: If the provider is not registered/configured.
        """
        if name not in self._providers:
            raise ValueError(f"Provider '{name}' is not configured")
        return self._providers[name]

    def list_providers(self) -> list[str]:
        return list(self._providers.keys())

    def is_configured(self, name: str) -> bool:
        return name in self._providers

    def quote_chain(self) -> list[QuoteProvider]:
        """Configured quote providers in fixed priority order."""
        return [
            self._providers[name]
            for name in QUOTE_PROVIDER_ORDER
            if name in self._providers
        ]

    def history_chain(self) -> list[tuple[HistoryProvider, float]]:
        """Configured history providers with their pre-attempt delays."""
        return [
            (self._providers[name], delay)
            for name, delay in HISTORY_PROVIDER_ORDER
            if name in self._providers
        ]

    def initialize_default_providers(self, settings, user_agents: UserAgentPool) -> None:
        """Instantiate every known provider that has the credentials it needs.

        Each import is wrapped in try/except so a missing dependency for
        one provider never prevents the rest from initializing.
        """
        for name, module_path, class_name, settings_key in PROVIDER_DEFINITIONS:
            try:
                module = importlib.import_module(module_path)
            except ImportError:
                logger.warning("Provider skipped (import failed): %s", name, exc_info=True)
                continue
            cls = getattr(module, class_name)
            self._try_init_provider(name, cls, settings, settings_key, user_agents)

        names = self.list_providers()
        if names:
            logger.info("Active market data providers: %s", ", ".join(names))
        else:
            logger.warning("No market data providers configured")

    def _try_init_provider(
        self,
        name: str,
        cls: type,
        settings,
        settings_key: Optional[str],
        user_agents: UserAgentPool,
    ) -> None:
        """Attempt to instantiate and register a single provider."""
        try:
            if settings_key is None:
                instance = cls(
                    quote_timeout=settings.QUOTE_TIMEOUT_SECONDS,
                    history_timeout=settings.HISTORY_TIMEOUT_SECONDS,
                )
            else:
                instance = cls(
                    api_key=getattr(settings, settings_key, ""),
                    user_agents=user_agents,
                    quote_timeout=settings.QUOTE_TIMEOUT_SECONDS,
                    history_timeout=settings.HISTORY_TIMEOUT_SECONDS,
                )
            if instance.is_configured():
                self.register_provider(instance)
                logger.info("Provider registered: %s", name)
            else:
                instance.close()
                logger.debug("Provider skipped (no API key): %s", name)
        except Exception:
            logger.warning(
                "Provider failed to initialize: %s", name, exc_info=True
            )

    def close(self) -> None:
        """Close every provider's HTTP resources."""
        for provider in self._providers.values():
            close = getattr(provider, "close", None)
            if close is not None:
                close()
