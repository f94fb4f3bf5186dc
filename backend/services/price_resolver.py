"""Current-price resolution with an ordered fallback chain.

For each ticker the same-day cache is consulted first; on a miss the quote
sources are tried in order, one attempt each. Any source failure (network
error, timeout, rate-limit notice, malformed payload) moves on to the next
source. The outcome is reported as a ``PriceResolution`` so callers can tell
"no price" apart from a price of zero.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional

from integrations.exceptions import ProviderError
from integrations.market_data_protocol import QuoteSource
from services.price_cache import DailyPriceCache

logger = logging.getLogger(__name__)


class PriceStatus(str, Enum):
    OK = "ok"  # first source answered
    DEGRADED = "degraded"  # a later source answered
    CACHED = "cached"
    UNAVAILABLE = "unavailable"


@dataclass
class PriceResolution:
    """Outcome of resolving one ticker."""

    ticker: str
    price: Optional[Decimal]
    source: Optional[str]
    status: PriceStatus
    errors: list[str] = field(default_factory=list)

    @property
    def available(self) -> bool:
        return self.price is not None


class PriceResolver:
    """Resolves current prices through a cache and a chain of quote sources.

    The database session (through ``cache``) is only touched on the calling
    thread. Provider calls fan out on a thread pool bounded by
    ``max_workers``; per-call timeouts are enforced by the HTTP clients.
    """

    def __init__(
        self,
        sources: list[QuoteSource],
        cache: Optional[DailyPriceCache] = None,
        max_workers: int = 8,
    ):
        self._sources = list(sources)
        self._cache = cache
        self._max_workers = max(1, max_workers)

    def resolve(self, ticker: str) -> PriceResolution:
        """Resolve a single ticker."""
        return self.resolve_many([ticker])[ticker.strip().upper()]

    def resolve_many(self, tickers: list[str]) -> dict[str, PriceResolution]:
        """Resolve every distinct ticker, keyed by upper-cased symbol.

        Order of the returned dict follows the first occurrence in ``tickers``.
        """
        symbols: list[str] = []
        for t in tickers:
            symbol = t.strip().upper()
            if symbol and symbol not in symbols:
                symbols.append(symbol)

        results: dict[str, PriceResolution] = {}
        pending: list[str] = []
        for symbol in symbols:
            cached = self._cache.get(symbol) if self._cache else None
            if cached is not None:
                results[symbol] = PriceResolution(
                    ticker=symbol,
                    price=Decimal(cached.close),
                    source=cached.source,
                    status=PriceStatus.CACHED,
                )
            else:
                pending.append(symbol)

        if pending:
            workers = min(self._max_workers, len(pending))
            with ThreadPoolExecutor(max_workers=workers) as pool:
                for symbol, resolution in zip(pending, pool.map(self._fetch, pending)):
                    results[symbol] = resolution

            if self._cache:
                for symbol in pending:
                    resolution = results[symbol]
                    if resolution.available:
                        self._cache.put(symbol, resolution.price, resolution.source)

        unavailable = [s for s in symbols if not results[s].available]
        if unavailable:
            logger.warning("No price available for %s", ", ".join(unavailable))

        return {s: results[s] for s in symbols}

    def _fetch(self, symbol: str) -> PriceResolution:
        """Walk the source chain for one symbol. Runs on a worker thread."""
        errors: list[str] = []
        if not self._sources:
            errors.append("no price sources configured")

        for index, source in enumerate(self._sources):
            name = source.provider_name
            try:
                result = source.get_latest_price(symbol)
            except ProviderError as e:
                logger.info("%s failed for %s: %s", name, symbol, e)
                errors.append(f"{name}: {e}")
                continue
            except Exception as e:
                logger.warning("%s raised unexpectedly for %s", name, symbol, exc_info=True)
                errors.append(f"{name}: {e}")
                continue

            price = result.close_price
            if price is None or not price.is_finite() or price < 0:
                errors.append(f"{name}: unusable price {price!r}")
                continue

            return PriceResolution(
                ticker=symbol,
                price=price,
                source=result.source or name,
                status=PriceStatus.OK if index == 0 else PriceStatus.DEGRADED,
                errors=errors,
            )

        return PriceResolution(
            ticker=symbol,
            price=None,
            source=None,
            status=PriceStatus.UNAVAILABLE,
            errors=errors,
        )
