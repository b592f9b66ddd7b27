"""
Error types raised by the screener and how they surface over HTTP.

Each error carries its own ``status_code`` and ``error_type``, so the app-level
handler in ``main.py`` can render any of them without a lookup table:
- 400: the caller sent something unusable (blank symbol)
- 404/429/502/503: the market data upstream failed in a known way

Upstream failures are normalized where the Alpha Vantage client meets the
data service into one tagged variant, ``MarketDataError``. Its ``kind`` is
what the fallback decision branches on.

Usage:
    from equity_screener.core.exceptions import RateLimitedError

    raise RateLimitedError("Thank you for using Alpha Vantage! ...")
"""

from enum import Enum
from typing import Any


class AppError(Exception):
    """
    Base error with an HTTP status.

    Keyword context (symbol, quota, ...) is kept for log events and merged
    into the JSON error body.
    """

    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Error body for responses and structured logs."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "status_code": self.status_code,
            **self.context,
        }


class ValidationError(AppError):
    """Input rejected before any upstream call (e.g., empty symbol)."""

    status_code = 400
    error_type = "validation_error"


class ExternalServiceError(AppError):
    """
    A third-party service failed; 503 unless a subclass knows better.

    Args:
        message: Error description
        service: Service identifier (e.g., "alpha_vantage")
        **context: Additional context (e.g., symbol)
    """

    status_code = 503
    error_type = "external_service_error"

    def __init__(self, message: str, service: str, **context: Any):
        super().__init__(message, service=service, **context)
        self.service = service


# ===== Market data tagged variant =====


class ErrorKind(str, Enum):
    """Failure categories surfaced by the market data layer."""

    RATE_LIMITED = "RATE_LIMITED"
    NOT_FOUND = "NOT_FOUND"
    MALFORMED = "MALFORMED"
    UNKNOWN = "UNKNOWN"


# Upstream quota signal the data service keys its synthetic fallback on
API_LIMIT_REACHED = "API_LIMIT_REACHED"


class MarketDataError(ExternalServiceError):
    """
    Normalized failure from the market data upstream.

    ``kind`` is the only thing callers should branch on; ``http_status`` and
    ``code`` are carried for diagnostics and the error payload shape
    ``{message, status, code}``.
    """

    kind: ErrorKind = ErrorKind.UNKNOWN
    error_type = "market_data_error"
    code: str | None = None

    def __init__(
        self,
        message: str,
        service: str = "alpha_vantage",
        http_status: int | None = None,
        **context: Any,
    ):
        super().__init__(message, service=service, kind=self.kind.value, **context)
        self.http_status = http_status

    @property
    def is_recoverable(self) -> bool:
        """Quota and transport failures can be substituted with other data."""
        return self.kind in (ErrorKind.RATE_LIMITED, ErrorKind.UNKNOWN)

    def to_error_info(self) -> dict[str, Any]:
        """Error shape handed to the dashboard."""
        return {
            "message": self.message,
            "status": self.http_status,
            "code": self.code,
        }


class RateLimitedError(MarketDataError):
    """Upstream quota exhausted (Alpha Vantage "Information"/"Note" payloads)."""

    kind = ErrorKind.RATE_LIMITED
    status_code = 429
    error_type = "rate_limited"
    code = API_LIMIT_REACHED


class SymbolNotFoundError(MarketDataError):
    """Upstream answered, but has nothing for the requested symbol."""

    kind = ErrorKind.NOT_FOUND
    status_code = 404
    error_type = "symbol_not_found"


class MalformedResponseError(MarketDataError):
    """Response is missing fields we rely on."""

    kind = ErrorKind.MALFORMED
    status_code = 502
    error_type = "malformed_response"


class UpstreamError(MarketDataError):
    """Network or transport failure talking to the upstream."""

    kind = ErrorKind.UNKNOWN
    status_code = 503
    error_type = "upstream_error"
