"""Market data API endpoints (search, quotes, sentiment, prediction)."""

import logging

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from database import get_db
from integrations.market_data_protocol import PriceBar
from schemas.base import normalize_ticker
from schemas.market_data import (
    DailyOpenCloseResponse,
    FetchPriceDataRequest,
    HistoricalPricePoint,
    IntradayPriceResponse,
    NewsArticle,
    NewsSentimentRequest,
    PriceDataResponse,
    SentimentResponse,
)
from services.errors import ValidationError
from services.market_data_service import MarketDataService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["market-data"])


def get_market_data_service() -> MarketDataService:
    """Get MarketDataService instance (overridden in tests)."""
    return MarketDataService()


def _ticker(value: str) -> str:
    ticker = normalize_ticker(value)
    if not ticker:
        raise ValidationError("Ticker symbol is required")
    return ticker


def _bar_dict(bar: PriceBar) -> dict:
    return {
        "open": bar.open,
        "high": bar.high,
        "low": bar.low,
        "close": bar.close,
        "volume": bar.volume,
        "adjusted_close": bar.adjusted_close,
        "dividend_amount": bar.dividend_amount,
        "split_coefficient": bar.split_coefficient,
    }


@router.get("/search/{query}")
def search(query: str, service: MarketDataService = Depends(get_market_data_service)):
    """Search tickers and company names (Tiingo results, unmodified)."""
    return service.search(query)


@router.get("/stock/latest/{ticker}", response_model=DailyOpenCloseResponse)
def get_daily_open_close(
    ticker: str,
    db: Session = Depends(get_db),
    service: MarketDataService = Depends(get_market_data_service),
):
    """Today's open/close, cached per ticker for the market day."""
    latest = service.get_daily_open_close(db, _ticker(ticker))
    db.commit()
    return {"open": latest.open, "close": latest.close}


@router.post("/stock/latest/{ticker}", response_model=PriceDataResponse)
def get_latest_price_data(
    ticker: str, service: MarketDataService = Depends(get_market_data_service)
):
    """Latest daily-adjusted OHLCV bar."""
    return _bar_dict(service.get_latest_daily_bar(_ticker(ticker)))


@router.post("/stock/intraday/{ticker}", response_model=IntradayPriceResponse)
def get_intraday_price_data(
    ticker: str, service: MarketDataService = Depends(get_market_data_service)
):
    """Latest 5-minute OHLCV bar."""
    return _bar_dict(service.get_intraday_bar(_ticker(ticker)))


@router.post("/stock/sentiment/{ticker}", response_model=SentimentResponse)
def get_sentiment(ticker: str, service: MarketDataService = Depends(get_market_data_service)):
    """Sentiment of the most recent news article mentioning the ticker."""
    overall, ticker_score = service.get_sentiment(_ticker(ticker))
    return SentimentResponse(overall_sentiment_score=overall, ticker_sentiment_score=ticker_score)


@router.post("/news-sentiment", response_model=dict[str, list[NewsArticle]])
def get_news_sentiment(
    request: NewsSentimentRequest,
    service: MarketDataService = Depends(get_market_data_service),
):
    """News articles per ticker, each with that ticker's sentiment entries."""
    return service.get_news(request.tickers)


@router.post("/fetch-price-data", response_model=list[HistoricalPricePoint])
def fetch_price_data(
    request: FetchPriceDataRequest,
    service: MarketDataService = Depends(get_market_data_service),
):
    """Full daily-adjusted history (newest first), the predictor's input."""
    bars = service.get_full_daily_history(request.ticker)
    return [{"date": bar.timestamp.date().isoformat(), **_bar_dict(bar)} for bar in bars]


@router.post("/predict")
def predict(
    payload: dict = Body(...),
    service: MarketDataService = Depends(get_market_data_service),
):
    """Forward the payload to the prediction service and return its answer."""
    return service.predict(payload)
