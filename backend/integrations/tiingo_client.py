"""Tiingo client: ticker search and latest daily open/close."""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

import httpx

from integrations.exceptions import ProviderAuthError, ProviderDataError
from integrations.http_utils import request_json
from integrations.parsing_utils import parse_decimal, parse_iso_datetime

logger = logging.getLogger(__name__)


@dataclass
class DailyOpenClose:
    """Open and close of the most recent trading day."""

    symbol: str
    price_date: date
    open: Decimal
    close: Decimal


class TiingoClient:
    """Market data provider using the Tiingo REST API."""

    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        base_url: str = "https://api.tiingo.com",
    ):
        self._api_key = api_key
        self._client = httpx.Client(
            base_url=base_url,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Token {api_key}",
            },
            timeout=timeout,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    @property
    def provider_name(self) -> str:
        return "tiingo"

    def _get(self, path: str, **params):
        if not self._api_key:
            raise ProviderAuthError("Tiingo API key is not configured", self.provider_name)
        return request_json(self._client, "GET", path, self.provider_name, params=params or None)

    def search(self, query: str) -> list[dict]:
        """Search tickers and company names; returns Tiingo's result list as-is."""
        data = self._get("/tiingo/utilities/search", query=query)
        if not isinstance(data, list):
            raise ProviderDataError(
                f"Tiingo: unexpected search payload for {query!r}", self.provider_name
            )
        return data

    def get_latest_open_close(self, symbol: str) -> Optional[DailyOpenClose]:
        """Return the latest daily open/close, or None if Tiingo has no rows."""
        data = self._get(f"/tiingo/daily/{symbol}/prices")
        if not isinstance(data, list):
            raise ProviderDataError(
                f"Tiingo: unexpected price payload for {symbol}", self.provider_name
            )
        if not data:
            logger.info("Tiingo: no daily prices for %s", symbol)
            return None

        latest = data[0]
        if not isinstance(latest, dict):
            raise ProviderDataError(f"Tiingo: malformed price row for {symbol}", self.provider_name)

        stamp = parse_iso_datetime(latest.get("date"))
        return DailyOpenClose(
            symbol=symbol,
            price_date=stamp.date() if stamp else date.today(),
            open=parse_decimal(latest.get("open"), "open", self.provider_name),
            close=parse_decimal(latest.get("close"), "close", self.provider_name),
        )
