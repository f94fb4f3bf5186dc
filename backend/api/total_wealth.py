"""Total wealth API endpoints."""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from api.portfolio import get_valuation_service
from database import get_db
from schemas.wealth import (
    BackfillResponse,
    CreateWealthResponse,
    UserIdRequest,
    WealthHistoryPoint,
    WealthResponse,
)
from services.portfolio_valuation_service import PortfolioValuationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/total-wealth", tags=["total-wealth"])


@router.post("/update", response_model=WealthResponse)
def update_total_wealth(
    request: UserIdRequest,
    db: Session = Depends(get_db),
    service: PortfolioValuationService = Depends(get_valuation_service),
):
    """Value the portfolio at current prices and store a snapshot."""
    result = service.compute_and_snapshot(db, request.user_id)
    db.commit()
    return result.snapshot


@router.post("/create", response_model=CreateWealthResponse)
def create_total_wealth(
    request: UserIdRequest,
    response: Response,
    db: Session = Depends(get_db),
    service: PortfolioValuationService = Depends(get_valuation_service),
):
    """Create the zero starting snapshot (201), or report the existing one (200)."""
    snapshot, created = service.create_initial(db, request.user_id)
    if created:
        db.commit()
        response.status_code = status.HTTP_201_CREATED
        message = "Total wealth entry created"
    else:
        message = "Total wealth entry already exists"
    return {"message": message, "created": created, "snapshot": snapshot}


@router.post("/backfill", response_model=BackfillResponse)
def backfill_total_wealth(
    request: UserIdRequest,
    db: Session = Depends(get_db),
    service: PortfolioValuationService = Depends(get_valuation_service),
):
    """Rebuild one snapshot per purchase date from historical closes."""
    result = service.backfill(db, request.user_id)
    db.commit()
    return {
        "user_id": result.user_id,
        "snapshots_written": len(result.snapshots),
        "calculation_dates": [s.calculation_date.date() for s in result.snapshots],
        "missing_prices": result.missing_prices,
    }


@router.get("/history/{user_id}", response_model=list[WealthHistoryPoint])
def get_total_wealth_history(
    user_id: str,
    db: Session = Depends(get_db),
    service: PortfolioValuationService = Depends(get_valuation_service),
):
    """Latest snapshot per month over the trailing window, oldest first."""
    return service.get_monthly_history(db, user_id)


@router.get("/{user_id}", response_model=WealthResponse)
def get_total_wealth(
    user_id: str,
    db: Session = Depends(get_db),
    service: PortfolioValuationService = Depends(get_valuation_service),
):
    """Most recent snapshot."""
    return service.get_latest(db, user_id)
