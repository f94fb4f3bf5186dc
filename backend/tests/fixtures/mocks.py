"""Mock implementations for external services."""

from datetime import date, datetime, timezone
from decimal import Decimal

from integrations.exceptions import ProviderConnectionError, ProviderDataError, ProviderError
from integrations.market_data_protocol import PriceBar, PriceResult
from integrations.tiingo_client import DailyOpenClose


class MockQuoteSource:
    """Quote source returning fixed prices, or failing on demand.

    Args:
        prices: symbol -> price. Symbols not listed raise ProviderDataError.
        name: provider_name reported by the source.
        failure: Exception raised for every call (overrides ``prices``).
    """

    def __init__(
        self,
        prices: dict[str, Decimal] | None = None,
        name: str = "mock",
        failure: Exception | None = None,
    ):
        self._prices = prices or {}
        self._name = name
        self._failure = failure
        self.calls: list[str] = []

    @property
    def provider_name(self) -> str:
        return self._name

    def get_latest_price(self, symbol: str) -> PriceResult:
        self.calls.append(symbol)
        if self._failure is not None:
            raise self._failure
        if symbol not in self._prices:
            raise ProviderDataError(f"no price for {symbol}", self._name)
        return PriceResult(
            symbol=symbol,
            price_date=date.today(),
            close_price=self._prices[symbol],
            source=self._name,
        )


class MockMarketDataProvider:
    """Mock historical price provider for testing.

    Returns configurable prices for any symbol/date combination.
    """

    def __init__(
        self,
        prices: dict[str, list[PriceResult]] | None = None,
        name: str = "mock_history",
    ):
        self._prices = prices or {}
        self._name = name
        self.calls: list[tuple[list[str], date, date]] = []

    @property
    def provider_name(self) -> str:
        return self._name

    def get_price_history(
        self, symbols: list[str], start_date: date, end_date: date
    ) -> dict[str, list[PriceResult]]:
        self.calls.append((list(symbols), start_date, end_date))
        result = {}
        for symbol in symbols:
            result[symbol] = [
                p for p in self._prices.get(symbol, [])
                if start_date <= p.price_date <= end_date
            ]
        return result


def make_bar(
    symbol: str,
    close: str,
    when: datetime | None = None,
    source: str = "mock",
) -> PriceBar:
    """PriceBar with open/high/low derived from ``close``."""
    c = Decimal(close)
    return PriceBar(
        symbol=symbol,
        timestamp=when or datetime(2024, 3, 15, tzinfo=timezone.utc),
        open=c - 1,
        high=c + 1,
        low=c - 2,
        close=c,
        volume=1000,
        source=source,
        adjusted_close=c,
        dividend_amount=Decimal("0"),
        split_coefficient=Decimal("1"),
    )


class MockAlphaVantageClient:
    """Stand-in for AlphaVantageClient's pass-through methods."""

    provider_name = "alphavantage"

    def __init__(
        self,
        daily_bar: PriceBar | None = None,
        intraday_bar: PriceBar | None = None,
        history: list[PriceBar] | None = None,
        feeds: dict[str, list[dict]] | None = None,
        failure: ProviderError | None = None,
    ):
        self.daily_bar = daily_bar
        self.intraday_bar = intraday_bar
        self.history = history or []
        self.feeds = feeds or {}
        self.failure = failure

    def _check(self):
        if self.failure is not None:
            raise self.failure

    def get_daily_bar(self, symbol: str) -> PriceBar:
        self._check()
        if self.daily_bar is None:
            raise ProviderDataError(f"no daily series for {symbol}", self.provider_name)
        return self.daily_bar

    def get_intraday_bar(self, symbol: str) -> PriceBar:
        self._check()
        if self.intraday_bar is None:
            raise ProviderDataError(f"no intraday series for {symbol}", self.provider_name)
        return self.intraday_bar

    def get_daily_history(self, symbol: str, full: bool = False) -> list[PriceBar]:
        self._check()
        if not self.history:
            raise ProviderDataError(f"no daily series for {symbol}", self.provider_name)
        return self.history

    def get_news_feed(self, tickers: str) -> list[dict]:
        self._check()
        return self.feeds.get(tickers, [])


class MockTiingoClient:
    """Stand-in for TiingoClient."""

    provider_name = "tiingo"

    def __init__(
        self,
        latest: dict[str, tuple[str, str]] | None = None,
        search_results: list[dict] | None = None,
        should_fail: bool = False,
    ):
        self._latest = latest or {}
        self._search_results = search_results or []
        self._should_fail = should_fail
        self.latest_calls: list[str] = []

    def search(self, query: str) -> list[dict]:
        if self._should_fail:
            raise ProviderConnectionError("Tiingo down", self.provider_name)
        return self._search_results

    def get_latest_open_close(self, symbol: str) -> DailyOpenClose | None:
        self.latest_calls.append(symbol)
        if self._should_fail:
            raise ProviderConnectionError("Tiingo down", self.provider_name)
        if symbol not in self._latest:
            return None
        open_, close = self._latest[symbol]
        return DailyOpenClose(
            symbol=symbol,
            price_date=date.today(),
            open=Decimal(open_),
            close=Decimal(close),
        )


class MockPredictionClient:
    """Echoes payloads back with a canned prediction."""

    provider_name = "prediction"

    def __init__(self, response=None, should_fail: bool = False):
        self._response = response if response is not None else {"prediction": 101.5}
        self._should_fail = should_fail
        self.payloads: list[dict] = []

    def predict(self, payload: dict):
        self.payloads.append(payload)
        if self._should_fail:
            raise ProviderConnectionError("predictor down", self.provider_name, timed_out=True)
        return self._response
