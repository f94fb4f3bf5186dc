"""API route handlers."""
from . import market_data, portfolio, total_wealth, user_profiles

__all__ = ["market_data", "portfolio", "total_wealth", "user_profiles"]
