"""Configuration for the Finnhub news client."""

from pydantic import BaseModel


class FinnhubConfig(BaseModel):
    """Configuration for Finnhub API client."""

    base_url: str = "https://finnhub.io/api/v1"
    timeout_seconds: float = 30.0
    lookback_days: int = 5
    general_category: str = "general"
    max_connections: int = 20
