"""Shared value parsing utilities for provider clients.

Provider payloads carry numbers as strings ("4. close": "187.3400") and
timestamps in several shapes; these helpers turn them into ``Decimal`` and
``datetime`` or raise ``ProviderDataError``.
"""

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation

from integrations.exceptions import ProviderDataError


def parse_decimal(value, field: str = "value", provider_name: str = "") -> Decimal:
    """Parse a provider number into a finite ``Decimal``.

    Raises:
        ProviderDataError: If the value is missing, non-numeric, NaN or infinite.
    """
    if value is None or isinstance(value, bool):
        raise ProviderDataError(f"Missing numeric field '{field}'", provider_name)
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ProviderDataError(
            f"Non-numeric value for '{field}': {value!r}", provider_name
        ) from None
    if not parsed.is_finite():
        raise ProviderDataError(f"Non-finite value for '{field}': {value!r}", provider_name)
    return parsed


def parse_int(value, field: str = "value", provider_name: str = "") -> int:
    """Parse a provider integer (volumes are sent as strings)."""
    return int(parse_decimal(value, field, provider_name))


def parse_iso_datetime(value) -> datetime | None:
    """Parse an ISO 8601 string (or date/datetime object) to a UTC-aware datetime.

    Handles the formats produced by the providers:
    - Z suffix with milliseconds (Tiingo: "2024-01-15T00:00:00.000Z")
    - Space-separated timestamps (Alpha Vantage intraday: "2024-01-15 16:00:00")
    - Date-only strings (Alpha Vantage daily: "2024-01-15")
    - datetime/date objects passed through with UTC normalisation

    Returns:
        A timezone-aware UTC datetime, or None if the value cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    value_str = str(value).strip()

    if value_str.endswith("Z"):
        value_str = value_str[:-1] + "+00:00"

    try:
        dt = datetime.fromisoformat(value_str)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except (ValueError, TypeError):
        pass

    try:
        d = date.fromisoformat(value_str)
        return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)
    except (ValueError, TypeError):
        return None
