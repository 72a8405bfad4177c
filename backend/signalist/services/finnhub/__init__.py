"""Finnhub market news integration."""

from .client import FinnhubClient, create_finnhub_client
from .config import FinnhubConfig
from .exceptions import (
    FinnhubAPIError,
    FinnhubAuthError,
    FinnhubNetworkError,
    FinnhubRateLimitError,
    FinnhubServerError,
)
from .models import Article

__all__ = [
    "FinnhubClient",
    "create_finnhub_client",
    "FinnhubConfig",
    "Article",
    "FinnhubAPIError",
    "FinnhubAuthError",
    "FinnhubRateLimitError",
    "FinnhubServerError",
    "FinnhubNetworkError",
]
