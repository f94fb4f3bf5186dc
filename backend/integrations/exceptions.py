"""Typed exception hierarchy for market data provider errors.

Provides structured exceptions for differentiated error handling
(missing credentials vs transient network errors vs bad payloads).
"""


class ProviderError(Exception):
    """Base exception for all provider-related errors.

    Carries the provider name so callers can identify which provider failed.
    """

    def __init__(self, message: str, provider_name: str = ""):
        self.provider_name = provider_name
        super().__init__(message)


class ProviderAuthError(ProviderError):
    """API key missing, expired, or rejected (HTTP 401/403)."""

    pass


class ProviderConnectionError(ProviderError):
    """Network failures: timeouts, DNS resolution, connection refused."""

    def __init__(self, message: str, provider_name: str = "", timed_out: bool = False):
        self.timed_out = timed_out
        super().__init__(message, provider_name)


class ProviderAPIError(ProviderError):
    """HTTP 4xx/5xx responses, or an in-body error/rate-limit notice."""

    def __init__(
        self,
        message: str,
        provider_name: str = "",
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, provider_name)

    @property
    def rate_limited(self) -> bool:
        return self.status_code == 429


class ProviderDataError(ProviderError):
    """Malformed or unparseable response from the provider."""

    pass
