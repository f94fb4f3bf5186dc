"""Pydantic schemas for market data pass-through endpoints.

Price payloads keep the snake_case keys the prediction client consumes.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from schemas.base import CamelModel, normalize_ticker


class DailyOpenCloseResponse(BaseModel):
    """Cached open/close for today."""

    open: Decimal
    close: Decimal


class IntradayPriceResponse(BaseModel):
    """Latest intraday OHLCV bar."""

    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: int


class PriceDataResponse(IntradayPriceResponse):
    """Latest daily-adjusted OHLCV bar."""

    adjusted_close: Optional[Decimal] = None
    dividend_amount: Optional[Decimal] = None
    split_coefficient: Optional[Decimal] = None


class HistoricalPricePoint(PriceDataResponse):
    """One day of the full daily-adjusted history."""

    date: str


class SentimentResponse(CamelModel):
    """Sentiment scores of the most recent article about a ticker."""

    overall_sentiment_score: float
    ticker_sentiment_score: float


class NewsArticle(BaseModel):
    title: Optional[str] = None
    url: Optional[str] = None
    summary: Optional[str] = None
    sentiment_label: Optional[str] = None
    sentiment_score: Optional[float] = None
    ticker_sentiments: list[dict] = []
    published_date: Optional[str] = None


class NewsSentimentRequest(BaseModel):
    tickers: list[str] = Field(min_length=1)

    @field_validator("tickers")
    @classmethod
    def _normalize_tickers(cls, v: list[str]) -> list[str]:
        tickers = [normalize_ticker(t) for t in v if t and t.strip()]
        if not tickers:
            raise ValueError("No tickers provided")
        return tickers


class FetchPriceDataRequest(BaseModel):
    ticker: str = Field(min_length=1)

    @field_validator("ticker")
    @classmethod
    def _normalize_ticker(cls, v: str) -> str:
        ticker = normalize_ticker(v)
        if not ticker:
            raise ValueError("Ticker is required")
        return ticker
