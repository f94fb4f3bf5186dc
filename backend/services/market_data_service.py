"""Thin orchestrator for market data providers."""

import logging
from datetime import date
from typing import Callable, Optional, TypeVar

from sqlalchemy.orm import Session

from config import settings
from integrations.alpha_vantage_client import (
    AlphaVantageClient,
    AlphaVantageDailySource,
    AlphaVantageIntradaySource,
)
from integrations.exceptions import ProviderDataError, ProviderError
from integrations.market_data_protocol import MarketDataProvider, PriceBar, PriceResult, QuoteSource
from integrations.prediction_client import PredictionClient
from integrations.tiingo_client import DailyOpenClose, TiingoClient
from services.errors import NotFoundError, UpstreamUnavailableError
from services.price_cache import DailyPriceCache
from services.price_resolver import PriceResolver

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _sentiment_score(value) -> float:
    """Parse a provider score; anything unparseable counts as neutral."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


class MarketDataService:
    """Orchestrates market data fetching via pluggable providers.

    Builds the current-price fallback chain (Alpha Vantage intraday, Alpha
    Vantage daily, then Yahoo Finance when enabled), serves historical
    closes for backfills, and wraps the pass-through endpoints (search,
    bars, sentiment, news, prediction). Provider failures on pass-through
    calls surface as ``UpstreamUnavailableError``.
    """

    def __init__(
        self,
        alpha_vantage: Optional[AlphaVantageClient] = None,
        tiingo: Optional[TiingoClient] = None,
        yahoo=None,
        prediction: Optional[PredictionClient] = None,
        quote_sources: Optional[list[QuoteSource]] = None,
        history_providers: Optional[list[MarketDataProvider]] = None,
    ):
        """Initialize with optional clients for dependency injection.

        Any client left as None is created from settings on first use.
        ``quote_sources`` and ``history_providers`` override the default
        chains entirely.
        """
        self._alpha_vantage = alpha_vantage
        self._tiingo = tiingo
        self._yahoo = yahoo
        self._prediction = prediction
        self._quote_sources = quote_sources
        self._history_providers = history_providers

    @property
    def alpha_vantage(self) -> AlphaVantageClient:
        if self._alpha_vantage is None:
            self._alpha_vantage = AlphaVantageClient(
                api_key=settings.ALPHA_VANTAGE_API_KEY,
                timeout=settings.PRICE_REQUEST_TIMEOUT_SECONDS,
            )
        return self._alpha_vantage

    @property
    def tiingo(self) -> TiingoClient:
        if self._tiingo is None:
            self._tiingo = TiingoClient(
                api_key=settings.TIINGO_API_KEY,
                timeout=settings.PRICE_REQUEST_TIMEOUT_SECONDS,
            )
        return self._tiingo

    @property
    def yahoo(self):
        if self._yahoo is None:
            from integrations.yahoo_finance_client import YahooFinanceClient

            self._yahoo = YahooFinanceClient(timeout=settings.PRICE_REQUEST_TIMEOUT_SECONDS)
        return self._yahoo

    @property
    def prediction(self) -> PredictionClient:
        if self._prediction is None:
            self._prediction = PredictionClient(url=settings.PREDICTION_SERVICE_URL)
        return self._prediction

    @property
    def quote_sources(self) -> list[QuoteSource]:
        """Current-price sources in fallback order."""
        if self._quote_sources is None:
            sources: list[QuoteSource] = [
                AlphaVantageIntradaySource(self.alpha_vantage),
                AlphaVantageDailySource(self.alpha_vantage),
            ]
            if settings.PRICE_FALLBACK_TO_YAHOO:
                sources.append(self.yahoo)
            self._quote_sources = sources
        return self._quote_sources

    @property
    def history_providers(self) -> list[MarketDataProvider]:
        """Historical close providers in fallback order."""
        if self._history_providers is None:
            providers: list[MarketDataProvider] = [self.alpha_vantage]
            if settings.PRICE_FALLBACK_TO_YAHOO:
                providers.append(self.yahoo)
            self._history_providers = providers
        return self._history_providers

    def build_price_resolver(self, db: Session) -> PriceResolver:
        """Resolver over the quote chain with the database-backed daily cache."""
        return PriceResolver(
            self.quote_sources,
            cache=DailyPriceCache(db),
            max_workers=settings.PRICE_FETCH_MAX_WORKERS,
        )

    def get_price_history(
        self, symbols: list[str], start_date: date, end_date: date
    ) -> dict[str, list[PriceResult]]:
        """Fetch historical prices, normalizing symbols to uppercase.

        Symbols a provider returns nothing for are retried on the next
        provider. Symbols no provider covers map to an empty list.
        """
        if not symbols:
            return {}

        normalized = list(dict.fromkeys(s.upper() for s in symbols))
        result: dict[str, list[PriceResult]] = {}
        remaining = normalized

        for provider in self.history_providers:
            fetched = provider.get_price_history(remaining, start_date, end_date)
            for symbol, prices in fetched.items():
                if prices:
                    result[symbol.upper()] = prices
            remaining = [s for s in remaining if s not in result]
            if not remaining:
                break
            logger.info(
                "%s had no history for %s", provider.provider_name, ", ".join(remaining)
            )

        for symbol in remaining:
            result[symbol] = []
        return result

    # --- Pass-through calls ---

    def _call(
        self,
        description: str,
        fn: Callable[[], T],
        missing_is_not_found: bool = False,
    ) -> T:
        """Run a provider call, converting provider errors to domain errors."""
        try:
            return fn()
        except ProviderDataError as e:
            if missing_is_not_found:
                raise NotFoundError(f"No {description}") from e
            logger.warning("Bad payload fetching %s: %s", description, e)
            raise UpstreamUnavailableError(f"Invalid response fetching {description}") from e
        except ProviderError as e:
            logger.warning("Error fetching %s: %s", description, e)
            raise UpstreamUnavailableError(f"Error fetching {description}") from e

    def search(self, query: str) -> list[dict]:
        """Ticker/company search via Tiingo."""
        return self._call(f"search results for {query!r}", lambda: self.tiingo.search(query))

    def get_daily_open_close(self, db: Session, ticker: str) -> DailyOpenClose:
        """Today's open/close, served from the daily cache when present."""
        ticker = ticker.upper()
        cache = DailyPriceCache(db)
        cached = cache.get(ticker)
        if cached is not None and cached.open is not None:
            return DailyOpenClose(
                symbol=ticker, price_date=cached.price_date, open=cached.open, close=cached.close
            )

        latest = self._call(
            f"daily prices for {ticker}", lambda: self.tiingo.get_latest_open_close(ticker)
        )
        if latest is None:
            raise NotFoundError(f"No data found for {ticker}")

        cache.put(ticker, close=latest.close, source=self.tiingo.provider_name, open=latest.open)
        return latest

    def get_latest_daily_bar(self, ticker: str) -> PriceBar:
        """Most recent daily-adjusted OHLCV bar."""
        return self._call(
            f"price data for {ticker}",
            lambda: self.alpha_vantage.get_daily_bar(ticker),
            missing_is_not_found=True,
        )

    def get_intraday_bar(self, ticker: str) -> PriceBar:
        """Most recent 5-minute OHLCV bar."""
        return self._call(
            f"intraday data for {ticker}",
            lambda: self.alpha_vantage.get_intraday_bar(ticker),
            missing_is_not_found=True,
        )

    def get_full_daily_history(self, ticker: str) -> list[PriceBar]:
        """Full daily-adjusted history, newest first."""
        bars = self._call(
            f"historical data for {ticker}",
            lambda: self.alpha_vantage.get_daily_history(ticker, full=True),
            missing_is_not_found=True,
        )
        return list(reversed(bars))

    def get_sentiment(self, ticker: str) -> tuple[float, float]:
        """Overall and ticker-specific sentiment of the latest article.

        Returns:
            (overall_sentiment_score, ticker_sentiment_score)
        """
        ticker = ticker.upper()
        feed = self._call(
            f"sentiment data for {ticker}", lambda: self.alpha_vantage.get_news_feed(ticker)
        )
        if not feed:
            raise NotFoundError(f"No sentiment data found for {ticker}")

        latest = feed[0] if isinstance(feed[0], dict) else {}
        overall = _sentiment_score(latest.get("overall_sentiment_score"))
        ticker_score = 0.0
        for entry in latest.get("ticker_sentiment") or []:
            if isinstance(entry, dict) and entry.get("ticker") == ticker:
                ticker_score = _sentiment_score(entry.get("ticker_sentiment_score"))
                break
        return overall, ticker_score

    def get_news(self, tickers: list[str]) -> dict[str, list[dict]]:
        """News articles per ticker with that ticker's sentiment entries.

        Tickers with an empty feed are omitted from the result.
        """
        news: dict[str, list[dict]] = {}
        for ticker in tickers:
            feed = self._call(
                f"news sentiment for {ticker}",
                lambda t=ticker: self.alpha_vantage.get_news_feed(t),
            )
            if not feed:
                continue
            news[ticker] = [
                {
                    "title": article.get("title"),
                    "url": article.get("url"),
                    "summary": article.get("summary"),
                    "sentiment_label": article.get("overall_sentiment_label"),
                    "sentiment_score": article.get("overall_sentiment_score"),
                    "ticker_sentiments": [
                        t
                        for t in article.get("ticker_sentiment") or []
                        if isinstance(t, dict) and t.get("ticker") == ticker
                    ],
                    "published_date": article.get("time_published"),
                }
                for article in feed
                if isinstance(article, dict)
            ]
        return news

    def predict(self, payload: dict):
        """Forward a feature payload to the prediction service."""
        return self._call("prediction", lambda: self.prediction.predict(payload))
