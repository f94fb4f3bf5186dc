"""Alpha Vantage client: intraday/daily time series and news sentiment."""

import logging
from datetime import date

import httpx

from integrations.exceptions import ProviderAPIError, ProviderAuthError, ProviderDataError, ProviderError
from integrations.http_utils import request_json
from integrations.market_data_protocol import PriceBar, PriceResult
from integrations.parsing_utils import parse_decimal, parse_int, parse_iso_datetime

logger = logging.getLogger(__name__)

INTRADAY_SERIES_KEY = "Time Series (5min)"
DAILY_SERIES_KEY = "Time Series (Daily)"

# Keys Alpha Vantage uses to report errors with an HTTP 200
_ERROR_KEY = "Error Message"
_THROTTLE_KEYS = ("Note", "Information")


class AlphaVantageClient:
    """Thin wrapper over the Alpha Vantage ``/query`` endpoint.

    Every method makes exactly one HTTP call. Failures surface as
    ``ProviderError`` subclasses; payloads that are JSON but lack the
    expected time series are ``ProviderDataError``.
    """

    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        base_url: str = "https://www.alphavantage.co",
    ):
        self._api_key = api_key
        self._client = httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    @property
    def provider_name(self) -> str:
        return "alphavantage"

    def _query(self, function: str, **params) -> dict:
        if not self._api_key:
            raise ProviderAuthError(
                "Alpha Vantage API key is not configured", self.provider_name
            )

        query = {"function": function, **params, "apikey": self._api_key}
        data = request_json(self._client, "GET", "/query", self.provider_name, params=query)

        if not isinstance(data, dict):
            raise ProviderDataError(
                f"Alpha Vantage: unexpected payload type {type(data).__name__}",
                self.provider_name,
            )
        if _ERROR_KEY in data:
            raise ProviderAPIError(
                f"Alpha Vantage: {data[_ERROR_KEY]}", self.provider_name
            )
        for key in _THROTTLE_KEYS:
            if key in data and len(data) == 1:
                raise ProviderAPIError(
                    f"Alpha Vantage: {data[key]}", self.provider_name, status_code=429
                )
        return data

    def _series(self, data: dict, key: str, symbol: str) -> dict:
        series = data.get(key)
        if not isinstance(series, dict) or not series:
            raise ProviderDataError(
                f"Alpha Vantage: no '{key}' for {symbol}", self.provider_name
            )
        return series

    def _parse_bar(self, symbol: str, stamp: str, row, source: str, daily: bool) -> PriceBar:
        if not isinstance(row, dict):
            raise ProviderDataError(
                f"Alpha Vantage: malformed bar for {symbol} at {stamp}", self.provider_name
            )
        timestamp = parse_iso_datetime(stamp)
        if timestamp is None:
            raise ProviderDataError(
                f"Alpha Vantage: bad timestamp {stamp!r} for {symbol}", self.provider_name
            )

        name = self.provider_name
        bar = PriceBar(
            symbol=symbol,
            timestamp=timestamp,
            open=parse_decimal(row.get("1. open"), "1. open", name),
            high=parse_decimal(row.get("2. high"), "2. high", name),
            low=parse_decimal(row.get("3. low"), "3. low", name),
            close=parse_decimal(row.get("4. close"), "4. close", name),
            volume=0,
            source=source,
        )
        if daily and "5. adjusted close" in row:
            # TIME_SERIES_DAILY_ADJUSTED layout
            bar.adjusted_close = parse_decimal(row.get("5. adjusted close"), "5. adjusted close", name)
            bar.volume = parse_int(row.get("6. volume"), "6. volume", name)
            bar.dividend_amount = parse_decimal(row.get("7. dividend amount", "0"), "7. dividend amount", name)
            bar.split_coefficient = parse_decimal(row.get("8. split coefficient", "1"), "8. split coefficient", name)
        else:
            bar.volume = parse_int(row.get("5. volume"), "5. volume", name)
        return bar

    def _latest_bar(self, symbol: str, series: dict, source: str, daily: bool) -> PriceBar:
        # Timestamps are ISO-formatted, so the lexical max is the newest
        latest = max(series)
        return self._parse_bar(symbol, latest, series[latest], source, daily)

    def _latest_close(self, symbol: str, series: dict, source: str) -> PriceResult:
        # Only the close matters for valuation; other bar fields may be absent
        latest = max(series)
        row = series[latest]
        if not isinstance(row, dict):
            raise ProviderDataError(
                f"Alpha Vantage: malformed bar for {symbol} at {latest}", self.provider_name
            )
        timestamp = parse_iso_datetime(latest)
        if timestamp is None:
            raise ProviderDataError(
                f"Alpha Vantage: bad timestamp {latest!r} for {symbol}", self.provider_name
            )
        return PriceResult(
            symbol=symbol,
            price_date=timestamp.date(),
            close_price=parse_decimal(row.get("4. close"), "4. close", self.provider_name),
            source=source,
        )

    def get_intraday_close(self, symbol: str) -> PriceResult:
        """Return the close of the newest 5-minute bar for ``symbol``."""
        data = self._query(
            "TIME_SERIES_INTRADAY", symbol=symbol, interval="5min", outputsize="compact"
        )
        series = self._series(data, INTRADAY_SERIES_KEY, symbol)
        return self._latest_close(symbol, series, "alphavantage_intraday")

    def get_daily_close(self, symbol: str) -> PriceResult:
        """Return the most recent daily-adjusted close for ``symbol``."""
        data = self._query("TIME_SERIES_DAILY_ADJUSTED", symbol=symbol)
        series = self._series(data, DAILY_SERIES_KEY, symbol)
        return self._latest_close(symbol, series, "alphavantage_daily")

    def get_intraday_bar(self, symbol: str) -> PriceBar:
        """Return the newest 5-minute bar for ``symbol``."""
        data = self._query(
            "TIME_SERIES_INTRADAY", symbol=symbol, interval="5min", outputsize="compact"
        )
        series = self._series(data, INTRADAY_SERIES_KEY, symbol)
        return self._latest_bar(symbol, series, "alphavantage_intraday", daily=False)

    def get_daily_bar(self, symbol: str) -> PriceBar:
        """Return the most recent daily-adjusted bar for ``symbol``."""
        data = self._query("TIME_SERIES_DAILY_ADJUSTED", symbol=symbol)
        series = self._series(data, DAILY_SERIES_KEY, symbol)
        return self._latest_bar(symbol, series, "alphavantage_daily", daily=True)

    def get_daily_history(self, symbol: str, full: bool = False) -> list[PriceBar]:
        """Return every daily-adjusted bar, oldest first.

        Args:
            symbol: Ticker symbol.
            full: Request the full 20+ year history instead of the
                  most recent 100 days.
        """
        data = self._query(
            "TIME_SERIES_DAILY_ADJUSTED",
            symbol=symbol,
            outputsize="full" if full else "compact",
        )
        series = self._series(data, DAILY_SERIES_KEY, symbol)
        return [
            self._parse_bar(symbol, stamp, series[stamp], "alphavantage_daily", daily=True)
            for stamp in sorted(series)
        ]

    def get_price_history(
        self, symbols: list[str], start_date: date, end_date: date
    ) -> dict[str, list[PriceResult]]:
        """Fetch historical closing prices from the daily-adjusted series.

        Uses the compact (100 day) series when the range fits in it,
        otherwise the full series.
        """
        if not symbols:
            return {}

        logger.info(
            "Alpha Vantage: fetching prices for %d symbols (%s to %s)",
            len(symbols), start_date, end_date,
        )

        result: dict[str, list[PriceResult]] = {s: [] for s in symbols}
        full = (date.today() - start_date).days > 100

        for symbol in symbols:
            try:
                bars = self.get_daily_history(symbol, full=full)
            except ProviderError:
                logger.warning(
                    "Alpha Vantage: failed to fetch history for %s", symbol, exc_info=True
                )
                continue

            for bar in bars:
                bar_date = bar.timestamp.date()
                if start_date <= bar_date <= end_date:
                    result[symbol].append(
                        PriceResult(
                            symbol=symbol,
                            price_date=bar_date,
                            close_price=bar.close,
                            source="alphavantage",
                        )
                    )

        return result

    def get_news_feed(self, tickers: str) -> list[dict]:
        """Return the NEWS_SENTIMENT feed for a comma-separated ticker list.

        An empty or missing feed is returned as an empty list.
        """
        data = self._query("NEWS_SENTIMENT", tickers=tickers)
        feed = data.get("feed") or []
        if not isinstance(feed, list):
            raise ProviderDataError(
                f"Alpha Vantage: malformed news feed for {tickers}", self.provider_name
            )
        return feed


class AlphaVantageIntradaySource:
    """First link of the price chain: latest intraday close."""

    def __init__(self, client: AlphaVantageClient):
        self._client = client

    @property
    def provider_name(self) -> str:
        return "alphavantage_intraday"

    def get_latest_price(self, symbol: str) -> PriceResult:
        return self._client.get_intraday_close(symbol)


class AlphaVantageDailySource:
    """Second link of the price chain: most recent daily-adjusted close."""

    def __init__(self, client: AlphaVantageClient):
        self._client = client

    @property
    def provider_name(self) -> str:
        return "alphavantage_daily"

    def get_latest_price(self, symbol: str) -> PriceResult:
        return self._client.get_daily_close(symbol)
