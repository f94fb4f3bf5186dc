"""Portfolio API endpoints: purchases, sales and derived holdings."""

import logging
from typing import Callable

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from api.helpers import holding_response_dict, open_lot_response_dict
from api.market_data import get_market_data_service
from database import get_db
from schemas.lot import (
    AddDetailsRequest,
    AddDetailsResponse,
    AggregatedHoldingResponse,
    OpenLotResponse,
    SaleEventResponse,
    SellRequest,
    SellResponse,
)
from services.errors import NotFoundError
from services.holdings_service import HoldingsService
from services.lot_ledger_service import LotLedgerService
from services.market_data_service import MarketDataService
from services.portfolio_valuation_service import PortfolioValuationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/portfolio", tags=["portfolio"])


def get_valuation_service(
    market_data: MarketDataService = Depends(get_market_data_service),
) -> PortfolioValuationService:
    """Get PortfolioValuationService instance, allowing for test overrides."""
    return PortfolioValuationService(market_data=market_data)


def get_wealth_recompute(
    service: PortfolioValuationService = Depends(get_valuation_service),
) -> Callable[[str], None]:
    """Callable scheduled after a sale to refresh the user's total wealth."""
    return service.recompute_in_background


def _require_portfolio(db: Session, user_id: str) -> None:
    if not LotLedgerService.has_portfolio(db, user_id):
        raise NotFoundError(f"Portfolio not found for user {user_id}")


@router.get("/aggregate/{user_id}", response_model=list[AggregatedHoldingResponse])
def get_aggregated_portfolio(user_id: str, db: Session = Depends(get_db)):
    """Holdings per ticker with total quantity, cost and average price."""
    _require_portfolio(db, user_id)
    return [holding_response_dict(h) for h in HoldingsService.aggregate(db, user_id)]


@router.get("/sales/{user_id}", response_model=list[SaleEventResponse])
def get_sales(user_id: str, db: Session = Depends(get_db)):
    """Sale history, most recent first."""
    _require_portfolio(db, user_id)
    return LotLedgerService.get_sales(db, user_id)


@router.get("/{user_id}", response_model=list[OpenLotResponse])
def get_portfolio(user_id: str, db: Session = Depends(get_db)):
    """Raw holding list: every lot with quantity left after sales."""
    _require_portfolio(db, user_id)
    return [open_lot_response_dict(lot) for lot in LotLedgerService.get_open_lots(db, user_id)]


@router.post("/addDetails", response_model=AddDetailsResponse)
def add_details(request: AddDetailsRequest, db: Session = Depends(get_db)):
    """Record a purchase lot."""
    stock = request.stock
    lot = LotLedgerService.record_purchase(
        db,
        user_id=request.user_id,
        ticker=stock.ticker,
        purchase_date=stock.purchase_date,
        quantity=stock.quantity,
        purchase_price=stock.purchase_price,
        brokerage_fees=stock.brokerage_fees,
        name=stock.name,
        asset_type=stock.asset_type,
    )
    db.commit()
    db.refresh(lot)
    return {"message": "Stock details added to portfolio", "lot": lot}


@router.post("/sell", response_model=SellResponse)
def sell(
    request: SellRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    recompute: Callable[[str], None] = Depends(get_wealth_recompute),
):
    """Record a sale and schedule a wealth recomputation.

    Previously stored snapshots are left as they are.
    """
    result = LotLedgerService.record_sale(
        db,
        user_id=request.user_id,
        ticker=request.ticker,
        sell_date=request.sell_date,
        quantity_sold=request.quantity_sold,
        selling_price=request.sell_price,
        brokerage_fees=request.brokerage_fees,
    )
    background_tasks.add_task(recompute, request.user_id)
    return {
        "message": "Stock sold successfully",
        "sale": result.sale,
        "remaining_quantity": result.remaining_quantity,
    }
