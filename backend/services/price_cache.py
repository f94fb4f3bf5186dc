"""Same-day price cache backed by the daily_stock_prices table.

Entries are keyed by (ticker, calendar date in the market timezone) and are
only served for the day they were stored under, so they expire at local
midnight. Rows from earlier days are removed by ``prune``.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import settings
from models import DailyStockPrice

logger = logging.getLogger(__name__)


class DailyPriceCache:
    """Read/write access to today's cached prices."""

    def __init__(self, db: Session, timezone_name: Optional[str] = None):
        self._db = db
        self._tz = ZoneInfo(timezone_name or settings.MARKET_TIMEZONE)

    def today(self) -> date:
        """Current calendar date in the market timezone."""
        return datetime.now(self._tz).date()

    def get(self, ticker: str, day: Optional[date] = None) -> Optional[DailyStockPrice]:
        """Return the row cached for ``ticker`` on ``day`` (default today)."""
        day = day or self.today()
        return (
            self._db.query(DailyStockPrice)
            .filter_by(ticker=ticker.upper(), price_date=day)
            .first()
        )

    def put(
        self,
        ticker: str,
        close: Decimal,
        source: str,
        open: Optional[Decimal] = None,
        day: Optional[date] = None,
    ) -> DailyStockPrice:
        """Insert or update the cached price for ``ticker`` on ``day``.

        An existing ``open`` is kept when the new write does not carry one.
        A concurrent insert of the same key is resolved by updating the row
        the other writer stored.
        """
        day = day or self.today()
        row = self.get(ticker, day)
        if row is None:
            try:
                with self._db.begin_nested():
                    row = DailyStockPrice(
                        ticker=ticker.upper(),
                        price_date=day,
                        open=open,
                        close=close,
                        source=source,
                    )
                    self._db.add(row)
                return row
            except IntegrityError:
                logger.info("Cache row for %s on %s already stored; updating", ticker.upper(), day)
                row = self.get(ticker, day)
                if row is None:
                    raise
        row.close = close
        row.source = source
        if open is not None:
            row.open = open
        self._db.flush()
        return row

    def prune(self, before: Optional[date] = None) -> int:
        """Delete rows older than ``before`` (default today). Returns count."""
        before = before or self.today()
        deleted = (
            self._db.query(DailyStockPrice)
            .filter(DailyStockPrice.price_date < before)
            .delete(synchronize_session=False)
        )
        if deleted:
            logger.info("Pruned %d stale cached prices (before %s)", deleted, before)
        return deleted
