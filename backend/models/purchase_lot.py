"""PurchaseLot model - immutable ledger record for each buy."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, Date, DateTime, Integer, Numeric, String

from database import Base


class PurchaseLot(Base):
    """A single purchase of a ticker by a user.

    Lots are never edited after creation. Sales do not touch lot rows;
    remaining quantities are derived by folding SaleEvents over the lots.
    """

    __tablename__ = "purchase_lots"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_purchase_lot_quantity_positive"),
        CheckConstraint("purchase_price >= 0", name="ck_purchase_lot_price_non_negative"),
        CheckConstraint("brokerage_fees >= 0", name="ck_purchase_lot_fees_non_negative"),
    )

    # Autoincrement id doubles as insertion order for aggregation
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False, index=True)
    ticker = Column(String, nullable=False, index=True)
    name = Column(String, nullable=True)
    asset_type = Column(String, nullable=True)
    purchase_date = Column(Date, nullable=False)
    quantity = Column(Numeric(18, 8), nullable=False)
    purchase_price = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    brokerage_fees = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    total_cost = Column(Numeric(18, 2), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
