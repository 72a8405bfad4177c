"""Interfaces of the external systems a workflow talks to.

The concrete implementations live in ``signalist.services`` and
``signalist.storage``; tests substitute in-memory fakes.
"""

from __future__ import annotations

from typing import Any, Protocol

from signalist.services.finnhub.models import Article
from signalist.services.gemini.models import EmptyResponse, HttpErrorResponse, OkResponse

from .models import Subscriber


class SubscriberSource(Protocol):
    async def get_all_users_for_news_email(self) -> list[Subscriber]: ...

    async def get_watchlist_symbols_by_email(self, email: str) -> list[str]: ...


class NewsSource(Protocol):
    async def get_news(self, symbols: list[str] | None = None) -> list[Article]: ...


class SummaryProvider(Protocol):
    async def generate(
        self,
        prompt: str,
        api_key: str,
    ) -> OkResponse | EmptyResponse | HttpErrorResponse: ...


class Mailer(Protocol):
    async def send_welcome_email(self, email: str, name: str | None, intro: str) -> Any: ...

    async def send_news_summary_email(self, email: str, date: str, news_content: str) -> Any: ...
