"""Pydantic schemas for total-wealth snapshots."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import Field, field_validator

from schemas.base import CamelModel


class UserIdRequest(CamelModel):
    """Body carrying only the user id."""

    user_id: str = Field(min_length=1)


class WealthResponse(CamelModel):
    """A persisted wealth snapshot."""

    total_wealth: Decimal
    total_invested: Decimal
    calculation_date: datetime
    is_backfill: bool = False
    unavailable_tickers: list[str] = []

    @field_validator("unavailable_tickers", mode="before")
    @classmethod
    def _split_tickers(cls, v):
        # Stored as a comma-separated column
        if v is None:
            return []
        if isinstance(v, str):
            return [t for t in v.split(",") if t]
        return v


class WealthHistoryPoint(CamelModel):
    """Latest snapshot of one calendar month."""

    total_wealth: Decimal
    total_invested: Decimal
    calculation_date: datetime


class CreateWealthResponse(CamelModel):
    message: str
    created: bool
    snapshot: WealthResponse


class BackfillResponse(CamelModel):
    """Summary of a historical backfill run."""

    user_id: str
    snapshots_written: int
    calculation_dates: list[date]
    missing_prices: dict[str, list[date]] = {}
