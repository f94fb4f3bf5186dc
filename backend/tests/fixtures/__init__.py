"""Test fixtures and sample data."""
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from models import PurchaseLot, SaleEvent


def add_lot(
    db: Session,
    user_id: str,
    ticker: str,
    quantity: str,
    price: str,
    fees: str = "0",
    purchase_date: date = date(2024, 1, 2),
    name: str | None = None,
) -> PurchaseLot:
    """Insert a purchase lot directly, bypassing validation."""
    q, p, f = Decimal(quantity), Decimal(price), Decimal(fees)
    lot = PurchaseLot(
        user_id=user_id,
        ticker=ticker,
        name=name,
        purchase_date=purchase_date,
        quantity=q,
        purchase_price=p,
        brokerage_fees=f,
        total_cost=(q * p + f).quantize(Decimal("0.01")),
    )
    db.add(lot)
    db.flush()
    return lot


def add_sale(
    db: Session,
    user_id: str,
    ticker: str,
    quantity: str,
    price: str,
    fees: str = "0",
    sell_date: date = date(2024, 2, 1),
) -> SaleEvent:
    """Insert a sale event directly, bypassing the quantity check."""
    q, p, f = Decimal(quantity), Decimal(price), Decimal(fees)
    sale = SaleEvent(
        user_id=user_id,
        ticker=ticker,
        sell_date=sell_date,
        quantity_sold=q,
        selling_price=p,
        brokerage_fees=f,
        total_sale_value=(q * p - f).quantize(Decimal("0.01")),
    )
    db.add(sale)
    db.flush()
    return sale


def make_acme_ledger(db: Session, user_id: str = "user-1") -> list[PurchaseLot]:
    """Two ACME lots: 10 @ 100 + 5 fee, then 5 @ 110 + 5 fee."""
    return [
        add_lot(db, user_id, "ACME", "10", "100", "5", purchase_date=date(2024, 1, 1), name="Acme Corp"),
        add_lot(db, user_id, "ACME", "5", "110", "5", purchase_date=date(2024, 1, 2), name="Acme Corp"),
    ]
