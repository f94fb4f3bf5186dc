"""Holdings aggregation: folds the purchase/sale ledger into positions.

Holdings are never stored. They are derived on demand by consuming each
ticker's lots first-in-first-out, ordered by (purchase_date, id), with the
sales recorded against that ticker.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from models import PurchaseLot, SaleEvent
from services.errors import DataIntegrityError

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass
class OpenLot:
    """A purchase lot with the quantity still held."""

    lot_id: int
    ticker: str
    name: Optional[str]
    asset_type: Optional[str]
    purchase_date: date
    original_quantity: Decimal
    quantity: Decimal
    purchase_price: Decimal
    brokerage_fees: Decimal  # share of the lot's fees attributable to ``quantity``

    @property
    def total_cost(self) -> Decimal:
        return self.quantity * self.purchase_price + self.brokerage_fees


@dataclass
class Holding:
    """Aggregated position in one ticker."""

    ticker: str
    name: Optional[str] = None
    asset_type: Optional[str] = None
    lots: list[OpenLot] = field(default_factory=list)

    @property
    def total_quantity(self) -> Decimal:
        return sum((lot.quantity for lot in self.lots), ZERO)

    @property
    def total_cost(self) -> Decimal:
        return sum((lot.total_cost for lot in self.lots), ZERO)

    @property
    def average_purchase_price(self) -> Decimal:
        quantity = self.total_quantity
        if quantity == 0:
            raise DataIntegrityError(
                f"Holding {self.ticker} has zero quantity; average price is undefined"
            )
        return self.total_cost / quantity


def _consume(lots: list[OpenLot], quantity: Decimal) -> Decimal:
    """Take ``quantity`` from ``lots`` FIFO. Returns the part left unfilled."""
    remaining = quantity
    for lot in lots:
        if remaining <= 0:
            break
        if lot.quantity <= 0:
            continue
        taken = min(lot.quantity, remaining)
        lot.quantity -= taken
        # Fees shrink in proportion to what is left of the original lot
        if lot.quantity == 0:
            lot.brokerage_fees = ZERO
        else:
            lot.brokerage_fees = lot.brokerage_fees * lot.quantity / (lot.quantity + taken)
        remaining -= taken
    return remaining


def fold_holdings(
    lots: Iterable[PurchaseLot],
    sales: Iterable[SaleEvent],
    strict: bool = True,
) -> list[Holding]:
    """Derive active holdings from ledger rows.

    Args:
        lots: Purchase lots (any order).
        sales: Sale events (any order).
        strict: When True, a sale that cannot be covered by the lots of its
                ticker raises. When False the lots are emptied and a warning
                is logged (used when replaying history).

    Returns:
        Holdings with a non-zero quantity, in order of the first lot
        recorded for each ticker.

    Raises:
        DataIntegrityError: A lot with a non-positive quantity, or (strict)
            sales exceeding the lots they refer to.
    """
    by_ticker: dict[str, Holding] = {}
    for lot in sorted(lots, key=lambda l: l.id):
        quantity = Decimal(lot.quantity)
        if quantity <= 0:
            raise DataIntegrityError(
                f"Purchase lot {lot.id} ({lot.ticker}) has non-positive quantity {quantity}"
            )
        holding = by_ticker.get(lot.ticker)
        if holding is None:
            holding = by_ticker[lot.ticker] = Holding(ticker=lot.ticker)
        if holding.name is None and lot.name:
            holding.name = lot.name
        if holding.asset_type is None and lot.asset_type:
            holding.asset_type = lot.asset_type
        holding.lots.append(
            OpenLot(
                lot_id=lot.id,
                ticker=lot.ticker,
                name=lot.name,
                asset_type=lot.asset_type,
                purchase_date=lot.purchase_date,
                original_quantity=quantity,
                quantity=quantity,
                purchase_price=Decimal(lot.purchase_price),
                brokerage_fees=Decimal(lot.brokerage_fees or 0),
            )
        )

    for holding in by_ticker.values():
        holding.lots.sort(key=lambda l: (l.purchase_date, l.lot_id))

    for sale in sorted(sales, key=lambda s: (s.sell_date, s.id)):
        holding = by_ticker.get(sale.ticker)
        lots_for_ticker = holding.lots if holding else []
        unfilled = _consume(lots_for_ticker, Decimal(sale.quantity_sold))
        if unfilled > 0:
            message = (
                f"Sale {sale.id} of {sale.quantity_sold} {sale.ticker} exceeds "
                f"the purchased quantity by {unfilled}"
            )
            if strict:
                raise DataIntegrityError(message)
            logger.warning(message)

    result = []
    for holding in by_ticker.values():
        holding.lots = [lot for lot in holding.lots if lot.quantity > 0]
        if holding.lots:
            result.append(holding)
    return result


class HoldingsService:
    """Loads a user's ledger and folds it into holdings."""

    @staticmethod
    def aggregate(
        db: Session, user_id: str, as_of: Optional[date] = None
    ) -> list[Holding]:
        """Return the user's active holdings.

        Args:
            db: Database session
            user_id: Owner of the ledger
            as_of: Only count lots bought and sales made on or before this
                   date. None means the whole ledger.
        """
        lots_query = db.query(PurchaseLot).filter(PurchaseLot.user_id == user_id)
        sales_query = db.query(SaleEvent).filter(SaleEvent.user_id == user_id)
        if as_of is not None:
            lots_query = lots_query.filter(PurchaseLot.purchase_date <= as_of)
            sales_query = sales_query.filter(SaleEvent.sell_date <= as_of)

        return fold_holdings(lots_query.all(), sales_query.all())
