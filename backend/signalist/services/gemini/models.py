"""Gemini response schema and the tagged result the workflow consumes.

The raw ``generateContent`` payload is decoded exactly once, here, into one of:

- ``OkResponse``: the first candidate's first text part
- ``EmptyResponse``: a 2xx response without usable text
- ``HttpErrorResponse``: a non-2xx status with its (truncated) body
"""

import json
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class GeminiPart(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: str | None = None


class GeminiContent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: str | None = None
    parts: list[GeminiPart] = Field(default_factory=list)


class GeminiCandidate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: GeminiContent | None = None
    finish_reason: str | None = Field(default=None, alias="finishReason")


class GenerateContentResponse(BaseModel):
    """Subset of the ``generateContent`` response body that we read."""

    model_config = ConfigDict(extra="ignore")

    candidates: list[GeminiCandidate] = Field(default_factory=list)

    @property
    def first_text(self) -> str | None:
        """``candidates[0].content.parts[0].text`` when present and non-blank."""
        if not self.candidates:
            return None
        content = self.candidates[0].content
        if content is None or not content.parts:
            return None
        text = content.parts[0].text
        if text is None or not text.strip():
            return None
        return text


class OkResponse(BaseModel):
    kind: Literal["ok"] = "ok"
    text: str


class EmptyResponse(BaseModel):
    kind: Literal["empty"] = "empty"
    reason: str = "response contained no text"


class HttpErrorResponse(BaseModel):
    kind: Literal["http_error"] = "http_error"
    status: int
    body: str = ""


ProviderResponse = Annotated[
    Union[OkResponse, EmptyResponse, HttpErrorResponse],
    Field(discriminator="kind"),
]


def build_request_body(prompt: str) -> dict:
    """Single-turn user prompt in the ``generateContent`` request shape."""
    return {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}


def decode_response(
    status_code: int,
    body: str,
    max_error_body_chars: int = 500,
) -> OkResponse | EmptyResponse | HttpErrorResponse:
    """Decode a raw HTTP status and body into a ``ProviderResponse``."""
    if not 200 <= status_code < 300:
        return HttpErrorResponse(status=status_code, body=body[:max_error_body_chars])

    try:
        parsed = GenerateContentResponse.model_validate(json.loads(body))
    except json.JSONDecodeError:
        return EmptyResponse(reason="response body is not valid JSON")
    except ValidationError as e:
        return EmptyResponse(reason=f"unexpected response shape: {e.error_count()} error(s)")

    text = parsed.first_text
    if text is None:
        return EmptyResponse()
    return OkResponse(text=text)
