"""Pydantic schemas for the purchase/sale ledger and derived holdings."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator

from schemas.base import CamelModel, normalize_ticker


class StockDetails(CamelModel):
    """One purchase as submitted by the client."""

    ticker: str
    name: Optional[str] = None
    asset_type: Optional[str] = None
    purchase_date: date
    quantity: Decimal
    purchase_price: Decimal
    brokerage_fees: Decimal = Decimal("0")

    @field_validator("ticker")
    @classmethod
    def _normalize_ticker(cls, v: str) -> str:
        return normalize_ticker(v)


class AddDetailsRequest(CamelModel):
    """Body of ``POST /api/portfolio/addDetails``."""

    user_id: str = Field(min_length=1)
    stock: StockDetails


class PurchaseLotResponse(CamelModel):
    """Schema for PurchaseLot API response."""

    id: int
    user_id: str
    ticker: str
    name: Optional[str] = None
    asset_type: Optional[str] = None
    purchase_date: date
    quantity: Decimal
    purchase_price: Decimal
    brokerage_fees: Decimal
    total_cost: Decimal
    created_at: datetime


class OpenLotResponse(CamelModel):
    """A lot with the quantity still held after FIFO sale consumption."""

    lot_id: int
    ticker: str
    name: Optional[str] = None
    asset_type: Optional[str] = None
    purchase_date: date
    original_quantity: Decimal
    quantity: Decimal
    purchase_price: Decimal
    brokerage_fees: Decimal
    total_cost: Decimal


class AggregatedHoldingResponse(CamelModel):
    """Per-ticker aggregate of the open lots."""

    ticker: str
    name: Optional[str] = None
    asset_type: Optional[str] = None
    total_quantity: Decimal
    total_cost: Decimal
    average_purchase_price: Decimal


class SellRequest(CamelModel):
    """Body of ``POST /api/portfolio/sell``."""

    user_id: str = Field(min_length=1)
    ticker: str
    sell_date: date
    quantity_sold: Decimal
    sell_price: Decimal
    brokerage_fees: Decimal = Decimal("0")

    @field_validator("ticker")
    @classmethod
    def _normalize_ticker(cls, v: str) -> str:
        return normalize_ticker(v)


class SaleEventResponse(CamelModel):
    """Schema for SaleEvent API response."""

    id: int
    user_id: str
    ticker: str
    sell_date: date
    quantity_sold: Decimal
    selling_price: Decimal
    brokerage_fees: Decimal
    total_sale_value: Decimal
    created_at: datetime


class SellResponse(CamelModel):
    """Result of a sale: the ledger record and what is left of the holding."""

    message: str
    sale: SaleEventResponse
    remaining_quantity: Decimal


class MessageResponse(CamelModel):
    message: str


class AddDetailsResponse(CamelModel):
    message: str
    lot: PurchaseLotResponse
