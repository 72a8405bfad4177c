"""Gemini generative-text service integration."""

from .client import GeminiClient, create_gemini_client
from .config import GeminiConfig
from .exceptions import GeminiConfigError, GeminiError, GeminiNetworkError
from .models import (
    EmptyResponse,
    GenerateContentResponse,
    HttpErrorResponse,
    OkResponse,
    ProviderResponse,
    decode_response,
)

__all__ = [
    "GeminiClient",
    "create_gemini_client",
    "GeminiConfig",
    "GeminiError",
    "GeminiConfigError",
    "GeminiNetworkError",
    "ProviderResponse",
    "OkResponse",
    "EmptyResponse",
    "HttpErrorResponse",
    "GenerateContentResponse",
    "decode_response",
]
