"""External market data integrations.

This package contains:
- Market data protocol: PriceResult/PriceBar and the source interfaces
- Alpha Vantage client: intraday/daily series and news sentiment
- Tiingo client: symbol search and daily open/close
- Yahoo Finance client: fallback closes via yfinance
- Prediction client: proxy to the external ML price predictor
"""
