"""Async Gemini ``generateContent`` client."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import GeminiConfig
from .exceptions import GeminiConfigError, GeminiNetworkError
from .models import (
    EmptyResponse,
    HttpErrorResponse,
    OkResponse,
    build_request_body,
    decode_response,
)

logger = logging.getLogger(__name__)


class GeminiClient:
    """Async client for the Gemini generative-text endpoint.

    The API key is supplied per call so the workflow owns the credential;
    the client never reads it from the environment.
    """

    def __init__(
        self,
        config: GeminiConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or GeminiConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        logger.info(f"Initialized GeminiClient (model={self.config.model})")

    async def __aenter__(self) -> GeminiClient:
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout_seconds,
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
            logger.info("Closed GeminiClient")

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("GeminiClient must be used as async context manager")
        return self._client

    async def generate(
        self,
        prompt: str,
        api_key: str,
    ) -> OkResponse | EmptyResponse | HttpErrorResponse:
        """Send one prompt and decode the reply.

        Non-2xx statuses and replies without text come back as
        ``HttpErrorResponse`` / ``EmptyResponse`` values, not exceptions.

        Raises:
            GeminiConfigError: ``api_key`` is empty (no request is made)
            GeminiNetworkError: The request failed before a response arrived
        """
        if not api_key:
            raise GeminiConfigError("Missing GEMINI_API_KEY in environment")

        endpoint = f"models/{self.config.model}:generateContent"

        try:
            response = await self.client.post(
                endpoint,
                params={"key": api_key},
                json=build_request_body(prompt),
                headers={"Content-Type": "application/json"},
            )
        except httpx.TimeoutException as e:
            raise GeminiNetworkError(f"Gemini request timed out: {e}") from e
        except httpx.RequestError as e:
            raise GeminiNetworkError(f"Gemini request failed: {e}") from e

        result = decode_response(
            response.status_code,
            response.text,
            max_error_body_chars=self.config.max_error_body_chars,
        )

        if isinstance(result, HttpErrorResponse):
            logger.error(f"Gemini API error {result.status}: {result.body}")
        elif isinstance(result, EmptyResponse):
            logger.warning(f"Gemini returned no text: {result.reason}")

        return result


def create_gemini_client(config: GeminiConfig | None = None) -> GeminiClient:
    """Factory function to create GeminiClient with default config."""
    return GeminiClient(config=config or GeminiConfig())
