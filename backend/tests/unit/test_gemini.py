"""Tests for the Gemini client and response decoding."""

import asyncio
import json

import httpx
import pytest

from signalist.services.gemini import (
    EmptyResponse,
    GeminiClient,
    GeminiConfig,
    GeminiConfigError,
    GeminiNetworkError,
    HttpErrorResponse,
    OkResponse,
    create_gemini_client,
    decode_response,
)


def _reply(text: str | None) -> str:
    parts = [] if text is None else [{"text": text}]
    return json.dumps({"candidates": [{"content": {"role": "model", "parts": parts}}]})


def test_decode_ok() -> None:
    assert decode_response(200, _reply("<p>Hello</p>")) == OkResponse(text="<p>Hello</p>")


def test_decode_missing_text_is_empty() -> None:
    assert isinstance(decode_response(200, _reply(None)), EmptyResponse)
    assert isinstance(decode_response(200, json.dumps({"candidates": []})), EmptyResponse)
    assert isinstance(decode_response(200, _reply("   ")), EmptyResponse)


def test_decode_invalid_json_is_empty() -> None:
    result = decode_response(200, "<html>oops</html>")
    assert isinstance(result, EmptyResponse)
    assert "JSON" in result.reason


def test_decode_non_2xx_is_http_error_with_truncated_body() -> None:
    result = decode_response(503, "x" * 1000, max_error_body_chars=10)
    assert result == HttpErrorResponse(status=503, body="x" * 10)


def test_generate_posts_prompt_with_key() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text=_reply("<p>Summary</p>"))

    config = GeminiConfig(model="gemini-test")

    async def run():
        async with GeminiClient(config, transport=httpx.MockTransport(handler)) as client:
            return await client.generate("Summarize this", api_key="secret")

    result = asyncio.run(run())

    assert result == OkResponse(text="<p>Summary</p>")
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v1/models/gemini-test:generateContent"
    assert request.url.params["key"] == "secret"
    assert json.loads(request.content) == {
        "contents": [{"role": "user", "parts": [{"text": "Summarize this"}]}]
    }


def test_generate_returns_http_error_instead_of_raising() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="internal")

    async def run():
        async with GeminiClient(transport=httpx.MockTransport(handler)) as client:
            return await client.generate("p", api_key="secret")

    assert asyncio.run(run()) == HttpErrorResponse(status=500, body="internal")


def test_generate_without_key_makes_no_request() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    async def run():
        async with GeminiClient(transport=httpx.MockTransport(handler)) as client:
            await client.generate("p", api_key="")

    with pytest.raises(GeminiConfigError, match="GEMINI_API_KEY"):
        asyncio.run(run())


def test_connection_error_is_retryable_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async def run():
        async with GeminiClient(transport=httpx.MockTransport(handler)) as client:
            await client.generate("p", api_key="secret")

    with pytest.raises(GeminiNetworkError) as exc_info:
        asyncio.run(run())
    assert exc_info.value.retryable is True


def test_client_requires_context_manager() -> None:
    with pytest.raises(RuntimeError):
        GeminiClient().client


def test_factory_uses_given_config() -> None:
    client = create_gemini_client(GeminiConfig(model="gemini-test"))
    assert isinstance(client, GeminiClient)
    assert client.config.model == "gemini-test"
