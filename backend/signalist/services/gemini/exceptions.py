"""Custom exceptions for the Gemini service."""


class GeminiError(Exception):
    """Base exception for Gemini client errors."""

    retryable: bool = False

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GeminiConfigError(GeminiError):
    """Client is missing required configuration (API key)."""

    pass


class GeminiNetworkError(GeminiError):
    """Request never produced an HTTP response (timeout, connection reset)."""

    retryable = True
