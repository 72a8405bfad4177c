"""Configuration for the Gemini generative-text client."""

from pydantic import BaseModel


class GeminiConfig(BaseModel):
    """Configuration for Gemini API client."""

    base_url: str = "https://generativelanguage.googleapis.com/v1"
    model: str = "gemini-2.5-flash-lite"
    timeout_seconds: float = 60.0
    max_error_body_chars: int = 500
