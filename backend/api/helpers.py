"""Shared API helpers for route handlers.

Response builders for the derived (non-ORM) holding objects.
"""

from services.holdings_service import Holding, OpenLot


def open_lot_response_dict(lot: OpenLot) -> dict:
    """Build an OpenLotResponse-compatible dict from an OpenLot.

    Args:
        lot: A lot with its remaining quantity and fee share.

    Returns:
        Dict matching the OpenLotResponse schema.
    """
    return {
        "lot_id": lot.lot_id,
        "ticker": lot.ticker,
        "name": lot.name,
        "asset_type": lot.asset_type,
        "purchase_date": lot.purchase_date,
        "original_quantity": lot.original_quantity,
        "quantity": lot.quantity,
        "purchase_price": lot.purchase_price,
        "brokerage_fees": lot.brokerage_fees,
        "total_cost": lot.total_cost,
    }


def holding_response_dict(holding: Holding) -> dict:
    """Build an AggregatedHoldingResponse-compatible dict from a Holding.

    Raises:
        DataIntegrityError: If the holding has zero quantity.
    """
    return {
        "ticker": holding.ticker,
        "name": holding.name,
        "asset_type": holding.asset_type,
        "total_quantity": holding.total_quantity,
        "total_cost": holding.total_cost,
        "average_purchase_price": holding.average_purchase_price,
    }
