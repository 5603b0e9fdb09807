"""Quote service — live quotes through a fixed-priority provider chain with a short-lived cache."""

import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Iterable, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from integrations.market_data_protocol import QuoteData, QuoteProvider
from models import StockQuote
from utils.clock import Clock, ensure_utc
from utils.ticker import normalize_symbol, unique_symbols

logger = logging.getLogger(__name__)

ORIGIN_CACHE = "cache"
ORIGIN_PROVIDER = "provider"
ORIGIN_STALE_CACHE = "stale_cache"
ORIGIN_NONE = "none"


@dataclass
class QuoteLookup:
    """Outcome of a single quote lookup.

    ``quote`` is what the caller should use; ``persisted`` tells whether a
    freshly fetched quote also made it into the cache table.
    """

    symbol: str
    quote: Optional[QuoteData]
    origin: str
    provider: Optional[str] = None
    persisted: bool = False

    @property
    def found(self) -> bool:
        return self.quote is not None


def quote_from_row(row: StockQuote) -> QuoteData:
    """Build a QuoteData from a cached StockQuote row."""
    return QuoteData(
        symbol=row.symbol,
        name=row.name or row.symbol,
        price=row.price,
        previous_close=row.previous_close,
        open=row.open,
        high=row.high,
        low=row.low,
        volume=row.volume,
        market_cap=row.market_cap,
        change_amount=row.change_amount,
        change_percent=row.change_percent,
        source=row.source or "",
        updated_at=ensure_utc(row.updated_at) if row.updated_at else None,
    )


class QuoteService:
    """Fetches live quotes, trying providers in a fixed order.

    A cached quote younger than ``cache_ttl_seconds`` is served without
    touching any provider. Otherwise providers are tried one at a time
    until one returns a positive price; the winner is written to the
    cache. If every provider fails, the cached quote is returned however
    old it is.
    """

    def __init__(
        self,
        providers: Sequence[QuoteProvider],
        clock: Optional[Clock] = None,
        sleep: Callable[[float], None] = time.sleep,
        cache_ttl_seconds: float = 30.0,
        retry_delay_seconds: float = 0.1,
        batch_delay_seconds: float = 0.05,
    ):
        """Initialize with the quote chain, highest priority first.

        Args:
            providers: Quote providers in priority order. The order is
                       fixed for the lifetime of the service.
            clock: Source of "now" (defaults to the UTC wall clock).
            sleep: Pause function used between provider attempts and
                   between symbols in ``get_quotes``.
            cache_ttl_seconds: Age below which a cached quote is fresh.
            retry_delay_seconds: Pause between provider attempts.
            batch_delay_seconds: Pause between symbols in ``get_quotes``.
        """
        self._providers = tuple(providers)
        self._clock = clock or Clock()
        self._sleep = sleep
        self.cache_ttl = timedelta(seconds=cache_ttl_seconds)
        self.retry_delay_seconds = retry_delay_seconds
        self.batch_delay_seconds = batch_delay_seconds

    @property
    def provider_names(self) -> list[str]:
        return [p.provider_name for p in self._providers]

    def get_quote(self, db: Session, symbol: str) -> Optional[QuoteData]:
        """Return a quote for ``symbol``, or None when nothing is available."""
        return self.lookup(db, symbol).quote

    def get_quotes(self, db: Session, symbols: Iterable[str]) -> dict[str, QuoteData]:
        """Fetch quotes one symbol at a time.

        Symbols are normalized and de-duplicated. Symbols with no quote at
        all are left out of the result.

        Returns:
            Dict mapping each uppercase symbol to its quote.
        """
        result: dict[str, QuoteData] = {}
        normalized = unique_symbols(symbols)

        for i, symbol in enumerate(normalized):
            if i > 0 and self.batch_delay_seconds:
                self._sleep(self.batch_delay_seconds)
            quote = self.get_quote(db, symbol)
            if quote is not None:
                result[symbol] = quote

        return result

    def get_cached_quote(self, db: Session, symbol: str) -> Optional[StockQuote]:
        return db.get(StockQuote, normalize_symbol(symbol))

    def lookup(self, db: Session, symbol: str) -> QuoteLookup:
        """Resolve a quote and report where it came from.

        Steps:
        1. Serve the cache if it is younger than the TTL.
        2. Walk the provider chain; first quote with price > 0 wins.
        3. Upsert the winner into the cache (failures are logged, the
           quote is still returned with ``persisted=False``).
        4. With no winner, fall back to the cache at any age, else None.
        """
        symbol = normalize_symbol(symbol)
        cached = db.get(StockQuote, symbol)

        if cached is not None and self._is_fresh(cached):
            logger.debug("Using cached quote for %s", symbol)
            return QuoteLookup(symbol=symbol, quote=quote_from_row(cached), origin=ORIGIN_CACHE)

        logger.info("Fetching fresh quote for %s", symbol)

        for i, provider in enumerate(self._providers):
            if i > 0 and self.retry_delay_seconds:
                self._sleep(self.retry_delay_seconds)

            try:
                quote = provider.get_quote(symbol)
            except Exception:
                # Adapters are not supposed to raise; keep walking the chain if one does
                logger.warning(
                    "Quote provider %s raised for %s", provider.provider_name, symbol,
                    exc_info=True,
                )
                continue

            if quote is None or not quote.is_valid:
                logger.debug("No usable quote for %s from %s", symbol, provider.provider_name)
                continue

            quote.symbol = symbol
            quote.source = quote.source or provider.provider_name
            quote.updated_at = self._clock.now()
            logger.info(
                "Got %s from %s: $%.2f", symbol, provider.provider_name, quote.price
            )
            persisted = self._store(db, cached, quote)
            return QuoteLookup(
                symbol=symbol,
                quote=quote,
                origin=ORIGIN_PROVIDER,
                provider=provider.provider_name,
                persisted=persisted,
            )

        if cached is not None:
            logger.warning("All quote providers failed, returning stale cache for %s", symbol)
            return QuoteLookup(
                symbol=symbol, quote=quote_from_row(cached), origin=ORIGIN_STALE_CACHE
            )

        logger.warning("All quote providers failed for %s", symbol)
        return QuoteLookup(symbol=symbol, quote=None, origin=ORIGIN_NONE)

    def _is_fresh(self, cached: StockQuote) -> bool:
        if cached.updated_at is None:
            return False
        age = self._clock.now() - ensure_utc(cached.updated_at)
        return age < self.cache_ttl

    def _store(self, db: Session, cached: Optional[StockQuote], quote: QuoteData) -> bool:
        """Upsert the quote into the cache table inside a savepoint.

        A failed write rolls back the savepoint only; other pending work in
        the caller's session is kept. The caller owns the commit.
        Returns True if the row was flushed.
        """
        try:
            with db.begin_nested():
                row = cached
                if row is None:
                    row = StockQuote(symbol=quote.symbol)
                    db.add(row)
                row.name = quote.name
                row.price = quote.price
                row.previous_close = quote.previous_close
                row.open = quote.open
                row.high = quote.high
                row.low = quote.low
                row.volume = quote.volume
                row.market_cap = quote.market_cap
                row.change_amount = quote.change_amount
                row.change_percent = quote.change_percent
                row.source = quote.source
                row.updated_at = quote.updated_at
                db.flush()
            return True
        except SQLAlchemyError:
            logger.warning("Quote cache update failed for %s", quote.symbol, exc_info=True)
            return False
