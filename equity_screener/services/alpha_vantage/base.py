"""
Base class for the Alpha Vantage client.
Provides initialization, HTTP client management, request budgeting, failure
normalization and sanitization utilities.
"""

import re
from typing import Any

import httpx
import structlog

from ...core.config import Settings
from ...core.exceptions import (
    MalformedResponseError,
    RateLimitedError,
    UpstreamError,
)
from ...core.rate_limiter import RateLimiter

logger = structlog.get_logger()

# Quota name used with the shared RateLimiter
QUOTA_KEY = "alpha_vantage"


class AlphaVantageBase:
    """
    Base class for Alpha Vantage API interactions.

    Provides:
    - HTTP client with connection pooling
    - API key management
    - Local enforcement of the requests-per-minute quota
    - Translation of every upstream failure into a MarketDataError
    - Response sanitization (removes API keys from logs)
    """

    # Class-level compiled regex pattern for API key sanitization
    _API_KEY_PATTERN = re.compile(
        r"(API[\s_-]?key[^A-Z0-9]*)[A-Z0-9]{16,}", flags=re.IGNORECASE
    )

    def __init__(
        self,
        settings: Settings,
        rate_limiter: RateLimiter | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize client with Alpha Vantage API key and persistent HTTP client.

        Args:
            settings: Application settings with API key and quota
            rate_limiter: Optional shared limiter enforcing the upstream quota
            http_client: Optional preconfigured HTTP client
        """
        self.settings = settings
        self.api_key = settings.alpha_vantage_api_key
        self.base_url = settings.alpha_vantage_base_url
        self.rate_limiter = rate_limiter

        # Persistent HTTP client with connection pooling
        self.client = http_client or httpx.AsyncClient(
            timeout=settings.alpha_vantage_timeout_seconds,
            limits=httpx.Limits(
                max_keepalive_connections=5,
                max_connections=10,
                keepalive_expiry=30.0,
            ),
        )

        if not self.api_key:
            logger.warning("Alpha Vantage API key not configured")

        logger.info(
            "Alpha Vantage client initialized",
            api_key_configured=bool(self.api_key),
            rate_limited=rate_limiter is not None,
        )

    async def close(self) -> None:
        """Close HTTP client and cleanup resources."""
        await self.client.aclose()
        logger.info("Alpha Vantage client closed")

    def _sanitize_text(self, text: str) -> str:
        """Remove API key from text strings before logging or raising exceptions."""
        if "API key" in text or "api key" in text or "apikey" in text:
            text = self._API_KEY_PATTERN.sub(r"\1****", text)
        if self.api_key and self.api_key in text:
            text = text.replace(self.api_key, "****")
        return text

    def _sanitize_response(self, response: dict[str, Any]) -> dict[str, Any]:
        """Remove API key from error responses before logging."""
        sanitized = response.copy()

        for field in ("Information", "Note", "Error Message"):
            if isinstance(sanitized.get(field), str):
                sanitized[field] = self._sanitize_text(sanitized[field])

        return sanitized

    async def _request(self, params: dict[str, Any]) -> dict[str, Any]:
        """
        Call the query endpoint and return the decoded payload.

        Raises:
            RateLimitedError: Local budget used up, HTTP 429, or an
                "Information"/"Note" quota payload
            UpstreamError: Transport failure or non-200 status
            MalformedResponseError: Undecodable body or "Error Message" payload
        """
        function = params.get("function", "")

        if self.rate_limiter is not None:
            self.rate_limiter.enforce_limit(
                QUOTA_KEY,
                self.settings.rate_limit_requests,
                self.settings.rate_limit_window,
            )

        try:
            response = await self.client.get(
                self.base_url, params={**params, "apikey": self.api_key}
            )
        except httpx.HTTPError as e:
            message = self._sanitize_text(str(e)) or type(e).__name__
            raise UpstreamError(
                f"Alpha Vantage request failed: {message}", function=function
            ) from e

        if response.status_code == 429:
            raise RateLimitedError(
                "Alpha Vantage API error: 429 - Too Many Requests",
                http_status=429,
                function=function,
            )

        if response.status_code != 200:
            sanitized_text = self._sanitize_text(response.text)
            raise UpstreamError(
                f"Alpha Vantage API error: {response.status_code} - {sanitized_text}",
                http_status=response.status_code,
                function=function,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                "Alpha Vantage returned a non-JSON body", function=function
            ) from e

        if not isinstance(data, dict):
            raise MalformedResponseError(
                "Alpha Vantage returned an unexpected payload", function=function
            )

        if "Error Message" in data:
            raise MalformedResponseError(
                self._sanitize_text(str(data["Error Message"])), function=function
            )

        if "Information" in data:
            raise RateLimitedError(
                self._sanitize_text(str(data["Information"])), function=function
            )

        # A bare "Note" replaces the payload when the per-minute quota is hit
        if "Note" in data and not set(data) - {"Note"}:
            raise RateLimitedError(
                self._sanitize_text(str(data["Note"])), function=function
            )

        return data


def parse_float(value: Any) -> float | None:
    """Parse Alpha Vantage numeric strings; "None", "-" and blanks become None."""
    if value is None:
        return None
    text = str(value).strip().rstrip("%")
    if text in ("", "None", "-", "N/A"):
        return None
    try:
        return float(text)
    except ValueError:
        return None
