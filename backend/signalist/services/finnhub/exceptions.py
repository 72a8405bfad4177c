"""Custom exceptions for Finnhub service."""


class FinnhubAPIError(Exception):
    """Base exception for Finnhub API errors."""

    retryable: bool = False

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class FinnhubAuthError(FinnhubAPIError):
    """Authentication failed (401/403) or no API key configured."""

    pass


class FinnhubRateLimitError(FinnhubAPIError):
    """Rate limit exceeded (429)."""

    retryable = True


class FinnhubServerError(FinnhubAPIError):
    """Server-side error (5xx)."""

    retryable = True


class FinnhubNetworkError(FinnhubAPIError):
    """Request failed before a response arrived."""

    retryable = True
