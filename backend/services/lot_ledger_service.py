"""Service for the append-only purchase/sale ledger.

Lots and sales are written once and never edited. Current positions are
always derived from the ledger (see ``services.holdings_service``), so a
sale is recorded as a new SaleEvent rather than a quantity update.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterator, Optional

from sqlalchemy.orm import Session

from models import PurchaseLot, SaleEvent, UserProfile
from services.errors import InsufficientHoldingError, NotFoundError, ValidationError
from services.holdings_service import OpenLot, fold_holdings

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _to_amount(value, field: str, allow_zero: bool = True) -> Decimal:
    """Coerce ``value`` to a finite, non-negative Decimal or raise ValidationError."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{field} must be numeric, got {value!r}")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be finite")
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative")
    if not allow_zero and amount == 0:
        raise ValidationError(f"{field} must be greater than zero")
    return amount


def _require_text(value: Optional[str], field: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} is required")
    return text


@dataclass
class SaleResult:
    """A recorded sale and the quantity of the ticker still held."""

    sale: SaleEvent
    remaining_quantity: Decimal


class LotLedgerService:
    """Records purchases and sales and answers ledger queries."""

    # One lock per (user_id, ticker) so concurrent sales of the same
    # holding cannot both pass the quantity check. Entries hold
    # [lock, waiter count] and are dropped once no sale is using them.
    _sale_locks: dict[tuple[str, str], list] = {}
    _sale_locks_guard = threading.Lock()

    @classmethod
    @contextmanager
    def _sale_lock(cls, user_id: str, ticker: str) -> Iterator[threading.Lock]:
        key = (user_id, ticker)
        with cls._sale_locks_guard:
            entry = cls._sale_locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield entry[0]
        finally:
            with cls._sale_locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del cls._sale_locks[key]

    # --- Writes ---

    @staticmethod
    def record_purchase(
        db: Session,
        user_id: str,
        ticker: str,
        purchase_date: date,
        quantity,
        purchase_price,
        brokerage_fees=Decimal("0"),
        name: Optional[str] = None,
        asset_type: Optional[str] = None,
    ) -> PurchaseLot:
        """Append a purchase lot.

        Raises:
            ValidationError: Missing/empty ticker or user, missing date, or a
                quantity, price or fee that is non-numeric, non-finite or
                negative (quantity must also be non-zero).
        """
        user_id = _require_text(user_id, "userId")
        ticker = _require_text(ticker, "ticker").upper()
        if purchase_date is None:
            raise ValidationError("purchaseDate is required")
        quantity = _to_amount(quantity, "quantity", allow_zero=False)
        purchase_price = _to_amount(purchase_price, "purchasePrice")
        brokerage_fees = _to_amount(
            brokerage_fees if brokerage_fees is not None else Decimal("0"), "brokerageFees"
        )

        total_cost = (quantity * purchase_price + brokerage_fees).quantize(
            CENT, rounding=ROUND_HALF_UP
        )
        lot = PurchaseLot(
            user_id=user_id,
            ticker=ticker,
            name=name,
            asset_type=asset_type,
            purchase_date=purchase_date,
            quantity=quantity,
            purchase_price=purchase_price,
            brokerage_fees=brokerage_fees,
            total_cost=total_cost,
        )
        db.add(lot)
        db.flush()
        logger.info(
            "Recorded purchase: %s shares of %s at %s for user %s",
            quantity,
            ticker,
            purchase_price,
            user_id,
        )
        return lot

    @classmethod
    def record_sale(
        cls,
        db: Session,
        user_id: str,
        ticker: str,
        sell_date: date,
        quantity_sold,
        selling_price,
        brokerage_fees=Decimal("0"),
    ) -> SaleResult:
        """Append a sale event after checking the held quantity.

        Runs under the (user_id, ticker) lock and commits before releasing
        it, so the check and the insert are atomic with respect to other
        sales of the same holding in this process. The ledger rows are also
        read ``FOR UPDATE`` on databases that support row locks.

        Raises:
            ValidationError: Bad input.
            NotFoundError: No portfolio for the user, or no active holding
                of ``ticker``.
            InsufficientHoldingError: ``quantity_sold`` exceeds the holding.
        """
        user_id = _require_text(user_id, "userId")
        ticker = _require_text(ticker, "ticker").upper()
        if sell_date is None:
            raise ValidationError("sellDate is required")
        quantity_sold = _to_amount(quantity_sold, "quantitySold", allow_zero=False)
        selling_price = _to_amount(selling_price, "sellPrice")
        brokerage_fees = _to_amount(
            brokerage_fees if brokerage_fees is not None else Decimal("0"), "brokerageFees"
        )

        with cls._sale_lock(user_id, ticker):
            try:
                if not cls.has_portfolio(db, user_id):
                    raise NotFoundError(f"No portfolio found for user {user_id}")

                lots = (
                    db.query(PurchaseLot)
                    .filter(PurchaseLot.user_id == user_id, PurchaseLot.ticker == ticker)
                    .with_for_update()
                    .all()
                )
                sales = (
                    db.query(SaleEvent)
                    .filter(SaleEvent.user_id == user_id, SaleEvent.ticker == ticker)
                    .with_for_update()
                    .all()
                )
                holdings = fold_holdings(lots, sales)
                if not holdings:
                    raise NotFoundError(f"No holding of {ticker} in portfolio")

                held = holdings[0].total_quantity
                if quantity_sold > held:
                    raise InsufficientHoldingError(ticker, quantity_sold, held)

                sale = SaleEvent(
                    user_id=user_id,
                    ticker=ticker,
                    sell_date=sell_date,
                    quantity_sold=quantity_sold,
                    selling_price=selling_price,
                    brokerage_fees=brokerage_fees,
                    total_sale_value=(quantity_sold * selling_price - brokerage_fees).quantize(
                        CENT, rounding=ROUND_HALF_UP
                    ),
                )
                db.add(sale)
                db.commit()
            except Exception:
                db.rollback()
                raise

        remaining = held - quantity_sold
        logger.info(
            "Recorded sale: %s shares of %s at %s for user %s (%s remaining)",
            quantity_sold,
            ticker,
            selling_price,
            user_id,
            remaining,
        )
        return SaleResult(sale=sale, remaining_quantity=remaining)

    # --- Queries ---

    @staticmethod
    def get_lots(db: Session, user_id: str) -> list[PurchaseLot]:
        """All purchase lots of a user in insertion order."""
        return (
            db.query(PurchaseLot)
            .filter(PurchaseLot.user_id == user_id)
            .order_by(PurchaseLot.id)
            .all()
        )

    @staticmethod
    def get_sales(db: Session, user_id: str) -> list[SaleEvent]:
        """All sale events of a user, most recent first."""
        return (
            db.query(SaleEvent)
            .filter(SaleEvent.user_id == user_id)
            .order_by(SaleEvent.sell_date.desc(), SaleEvent.id.desc())
            .all()
        )

    @classmethod
    def get_open_lots(cls, db: Session, user_id: str) -> list[OpenLot]:
        """Lots with quantity left after sales, grouped by holding."""
        holdings = fold_holdings(cls.get_lots(db, user_id), cls.get_sales(db, user_id))
        return [lot for holding in holdings for lot in holding.lots]

    @staticmethod
    def has_portfolio(db: Session, user_id: str) -> bool:
        """True once the user has a profile or any ledger entry."""
        return (
            db.query(PurchaseLot.id).filter(PurchaseLot.user_id == user_id).first() is not None
            or db.query(SaleEvent.id).filter(SaleEvent.user_id == user_id).first() is not None
            or db.query(UserProfile.id).filter(UserProfile.user_id == user_id).first()
            is not None
        )
