"""Async Finnhub client for company and general market news."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, timedelta
from itertools import zip_longest
from typing import Any

import httpx
from pydantic import ValidationError

from .config import FinnhubConfig
from .exceptions import (
    FinnhubAPIError,
    FinnhubAuthError,
    FinnhubNetworkError,
    FinnhubRateLimitError,
    FinnhubServerError,
)
from .models import Article

logger = logging.getLogger(__name__)


class FinnhubClient:
    def __init__(
        self,
        api_key: str,
        config: FinnhubConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not api_key:
            raise FinnhubAuthError("FINNHUB_API_KEY is required")

        self.api_key = api_key
        self.config = config or FinnhubConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        logger.info("Initialized FinnhubClient")

    async def __aenter__(self) -> FinnhubClient:
        limits = httpx.Limits(max_connections=self.config.max_connections)
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout_seconds,
            limits=limits,
            transport=self._transport,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: Any,
    ) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Closed FinnhubClient")

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("FinnhubClient must be used as async context manager")
        return self._client

    async def _request(self, endpoint: str, params: dict[str, Any]) -> Any:
        try:
            response = await self.client.get(
                endpoint,
                params={**params, "token": self.api_key},
            )
        except httpx.RequestError as e:
            raise FinnhubNetworkError(f"Request to {endpoint} failed: {e}") from e

        if response.status_code in (401, 403):
            raise FinnhubAuthError("Authentication failed", status_code=response.status_code)
        elif response.status_code == 429:
            raise FinnhubRateLimitError("Rate limit exceeded", status_code=429)
        elif response.status_code >= 500:
            raise FinnhubServerError(
                f"Server error {response.status_code}", status_code=response.status_code
            )
        elif response.status_code >= 400:
            raise FinnhubAPIError(
                f"Request to {endpoint} rejected: {response.text[:200]}",
                status_code=response.status_code,
            )

        return response.json()

    @staticmethod
    def _parse_articles(raw: Any) -> list[Article]:
        if not isinstance(raw, list):
            return []

        articles: list[Article] = []
        for item in raw:
            try:
                articles.append(Article.model_validate(item))
            except ValidationError:
                # Finnhub occasionally returns stubs without headline or url
                continue
        return articles

    async def get_company_news(self, symbol: str, today: date | None = None) -> list[Article]:
        """Company news for one symbol over the configured lookback window."""
        end = today or date.today()
        start = end - timedelta(days=self.config.lookback_days)
        raw = await self._request(
            "company-news",
            {"symbol": symbol.upper(), "from": start.isoformat(), "to": end.isoformat()},
        )
        return self._parse_articles(raw)

    async def get_general_news(self) -> list[Article]:
        """General, non-personalized market news."""
        raw = await self._request("news", {"category": self.config.general_category})
        return self._parse_articles(raw)

    async def get_news(self, symbols: list[str] | None = None) -> list[Article]:
        """Personalized news for ``symbols``, or general news when none are given.

        Per-symbol results are interleaved round-robin, keeping each symbol's
        provider order, and de-duplicated by url. One symbol failing does not
        discard the others; only all symbols failing raises.
        """
        if not symbols:
            return await self.get_general_news()

        results = await asyncio.gather(
            *(self.get_company_news(symbol) for symbol in symbols),
            return_exceptions=True,
        )

        per_symbol: list[list[Article]] = []
        errors: list[BaseException] = []
        for symbol, result in zip(symbols, results):
            if isinstance(result, BaseException):
                logger.warning(f"Company news failed for {symbol}: {result}")
                errors.append(result)
                continue
            per_symbol.append(result)

        if errors and not per_symbol:
            raise errors[0]

        seen: set[str] = set()
        merged: list[Article] = []
        for round_ in zip_longest(*per_symbol):
            for article in round_:
                if article is None or article.url in seen:
                    continue
                seen.add(article.url)
                merged.append(article)

        logger.info(f"Fetched {len(merged)} articles for {len(symbols)} symbols")
        return merged


def create_finnhub_client(api_key: str, config: FinnhubConfig | None = None) -> FinnhubClient:
    """Factory function to create FinnhubClient with default config."""
    return FinnhubClient(api_key=api_key, config=config or FinnhubConfig())
