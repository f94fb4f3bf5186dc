"""Domain errors raised by the portfolio services.

Each error carries the HTTP status and a short ``kind`` string so the API
layer can render every failure the same way (see ``main.py``).
"""


class PortfolioError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    kind: str = "portfolio_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(PortfolioError):
    """Malformed or missing input (non-numeric, negative, empty ticker...)."""

    status_code = 400
    kind = "validation_error"


class NotFoundError(PortfolioError):
    """No portfolio, holding or snapshot for the request."""

    status_code = 404
    kind = "not_found"


class InsufficientHoldingError(PortfolioError):
    """Attempt to sell more than the held quantity."""

    status_code = 400
    kind = "insufficient_holding"

    def __init__(self, ticker: str, requested, held):
        self.ticker = ticker
        self.requested = requested
        self.held = held
        super().__init__(
            f"Cannot sell {requested} shares of {ticker}: only {held} held"
        )


class UpstreamUnavailableError(PortfolioError):
    """Every external source for a request failed or returned nothing usable."""

    status_code = 503
    kind = "upstream_unavailable"


class DataIntegrityError(PortfolioError):
    """The ledger contains records that cannot be folded into holdings."""

    status_code = 500
    kind = "data_integrity"
