"""WealthSnapshot model - point-in-time portfolio value for a user."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, Column, DateTime, Index, Numeric, String

from database import Base
from models.utils import generate_uuid


class WealthSnapshot(Base):
    """Total market value and invested capital at a moment in time.

    Append-only: live valuations always insert a new row. Backfilled rows
    are keyed by (user_id, calculation_date) and overwritten on re-run.
    """

    __tablename__ = "wealth_snapshots"
    __table_args__ = (
        Index("ix_wealth_snapshots_user_date", "user_id", "calculation_date"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String, nullable=False, index=True)
    total_wealth = Column(Numeric(18, 2), nullable=False, default=Decimal("0"))
    total_invested = Column(Numeric(18, 2), nullable=False, default=Decimal("0"))
    calculation_date = Column(DateTime, nullable=False)
    is_backfill = Column(Boolean, nullable=False, default=False)
    # Comma-separated tickers that had no usable price (contributed 0)
    unavailable_tickers = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    @property
    def unavailable_ticker_list(self) -> list[str]:
        if not self.unavailable_tickers:
            return []
        return self.unavailable_tickers.split(",")
