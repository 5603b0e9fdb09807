"""Market data service — process-scoped wiring of providers and services."""

import logging
import time
from functools import lru_cache
from typing import Callable, Optional, Sequence

from config import Settings, settings
from integrations.market_data_protocol import HistoryProvider, QuoteProvider
from integrations.provider_registry import MarketDataProviderRegistry
from integrations.user_agents import UserAgentPool
from services.history_service import HistoryService
from services.performance_service import PerformanceService
from services.quote_service import QuoteService
from services.snapshot_service import SnapshotService
from utils.clock import Clock

logger = logging.getLogger(__name__)


class MarketDataService:
    """Owns the provider chains, the User-Agent pool and the services built on them.

    Construct once at startup and share; every method takes the caller's
    database session, so nothing here is request-scoped.
    """

    def __init__(
        self,
        quote_providers: Optional[Sequence[QuoteProvider]] = None,
        history_providers: Optional[Sequence[tuple[HistoryProvider, float]]] = None,
        app_settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize with optional provider chains for dependency injection.

        Args:
            quote_providers: Quote chain in priority order. If None, the
                             chains are built from configured providers.
            history_providers: ``(provider, delay)`` history chain. If None,
                               built from configured providers.
            app_settings: Settings to read limits and API keys from.
            clock: Source of "now" shared by every service.
            sleep: Pause function shared by every service.
        """
        self.settings = app_settings or settings
        self.clock = clock or Clock()
        self.user_agents = UserAgentPool()
        self.registry: Optional[MarketDataProviderRegistry] = None

        if quote_providers is None or history_providers is None:
            self.registry = MarketDataProviderRegistry()
            self.registry.initialize_default_providers(self.settings, self.user_agents)
            if quote_providers is None:
                quote_providers = self.registry.quote_chain()
            if history_providers is None:
                history_providers = self.registry.history_chain()

        s = self.settings
        self.quotes = QuoteService(
            quote_providers,
            clock=self.clock,
            sleep=sleep,
            cache_ttl_seconds=s.QUOTE_CACHE_TTL_SECONDS,
            retry_delay_seconds=s.PROVIDER_RETRY_DELAY_SECONDS,
            batch_delay_seconds=s.QUOTE_BATCH_DELAY_SECONDS,
        )
        self.history = HistoryService(
            history_providers,
            self.quotes,
            clock=self.clock,
            sleep=sleep,
            freshness_hours=s.HISTORY_FRESHNESS_HOURS,
            fetch_days=s.HISTORY_FETCH_DAYS,
            default_days=s.DEFAULT_HISTORY_DAYS,
        )
        self.snapshots = SnapshotService(self.quotes, clock=self.clock)
        self.performance = PerformanceService(
            self.history,
            self.snapshots,
            clock=self.clock,
            min_points=s.MIN_PERFORMANCE_POINTS,
        )

    def close(self) -> None:
        """Release provider HTTP clients created by the registry."""
        if self.registry is not None:
            self.registry.close()


@lru_cache
def get_market_data_service() -> MarketDataService:
    """Process-wide MarketDataService built from ``settings``."""
    logger.info("Initializing market data service")
    return MarketDataService()
