"""Market data provider protocol definitions.

Two interfaces are used by the valuation pipeline:

- ``QuoteSource``: one link in the current-price fallback chain. Returns a
  single latest price or raises a ``ProviderError``.
- ``MarketDataProvider``: historical daily closes for a date range, used by
  the wealth backfill. Failed symbols map to an empty list.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Protocol


@dataclass
class PriceResult:
    """A single closing price for a symbol on a specific date."""

    symbol: str
    price_date: date  # Actual trading date (may differ from requested for weekends/holidays)
    close_price: Decimal
    source: str  # e.g., "alphavantage_intraday"


@dataclass
class PriceBar:
    """One OHLCV bar from a time series (intraday or daily)."""

    symbol: str
    timestamp: datetime
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: int
    source: str
    adjusted_close: Decimal | None = None
    dividend_amount: Decimal | None = None
    split_coefficient: Decimal | None = None


class QuoteSource(Protocol):
    """A source of near-current prices for a single symbol."""

    @property
    def provider_name(self) -> str:
        """Return the source name (e.g., 'alphavantage_intraday')."""
        ...

    def get_latest_price(self, symbol: str) -> PriceResult:
        """Return the most recent price for ``symbol``.

        Raises:
            ProviderError: On network failure, timeout, or a payload that
                does not contain a usable price.
        """
        ...


class MarketDataProvider(Protocol):
    """Protocol for historical price providers."""

    @property
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'yahoo')."""
        ...

    def get_price_history(
        self, symbols: list[str], start_date: date, end_date: date
    ) -> dict[str, list[PriceResult]]:
        """Fetch historical closing prices for the given symbols and date range.

        Args:
            symbols: List of ticker symbols.
            start_date: Start date (inclusive).
            end_date: End date (inclusive).

        Returns:
            Dict mapping each symbol to its list of daily closing prices.
            Unknown or failed symbols map to an empty list.
        """
        ...
