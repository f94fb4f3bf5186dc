"""SaleEvent model - immutable ledger record for each sell."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, Date, DateTime, Integer, Numeric, String

from database import Base


class SaleEvent(Base):
    """A sale of some quantity of a ticker.

    Created exactly once per sale and never mutated. Which lots a sale
    consumes is decided at aggregation time (FIFO), not stored.
    """

    __tablename__ = "sale_events"
    __table_args__ = (
        CheckConstraint("quantity_sold > 0", name="ck_sale_event_quantity_positive"),
        CheckConstraint("selling_price >= 0", name="ck_sale_event_price_non_negative"),
        CheckConstraint("brokerage_fees >= 0", name="ck_sale_event_fees_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False, index=True)
    ticker = Column(String, nullable=False, index=True)
    sell_date = Column(Date, nullable=False)
    quantity_sold = Column(Numeric(18, 8), nullable=False)
    selling_price = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    brokerage_fees = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    total_sale_value = Column(Numeric(18, 2), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
