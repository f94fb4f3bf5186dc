"""SQLAlchemy ORM models."""

from .daily_stock_price import DailyStockPrice
from .purchase_lot import PurchaseLot
from .sale_event import SaleEvent
from .user_profile import UserProfile
from .wealth_snapshot import WealthSnapshot
from .utils import generate_uuid

__all__ = ["DailyStockPrice", "PurchaseLot", "SaleEvent", "UserProfile", "WealthSnapshot", "generate_uuid"]
