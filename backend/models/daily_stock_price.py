"""DailyStockPrice model - same-day price cache rows."""

from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Numeric, String, UniqueConstraint

from database import Base
from models.utils import generate_uuid


class DailyStockPrice(Base):
    """A price observed for a ticker on a calendar day.

    Rows are only served for the day they were stored under; see
    services.price_cache.DailyPriceCache for the expiry policy.
    """

    __tablename__ = "daily_stock_prices"
    __table_args__ = (
        UniqueConstraint("ticker", "price_date", name="uix_daily_stock_price"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    ticker = Column(String, nullable=False, index=True)
    price_date = Column(Date, nullable=False, index=True)
    open = Column(Numeric(18, 6), nullable=True)
    close = Column(Numeric(18, 6), nullable=False)
    source = Column(String, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
