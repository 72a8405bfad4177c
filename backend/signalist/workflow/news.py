"""News fallback chain: personalized -> generic, then truncate."""

from __future__ import annotations

import logging

from signalist.services.finnhub.models import Article

from .collaborators import NewsSource
from .models import Subscriber

logger = logging.getLogger(__name__)

DEFAULT_MAX_ARTICLES = 6


async def _fetch(
    source: NewsSource,
    symbols: list[str] | None,
    subscriber: Subscriber,
    kind: str,
) -> list[Article]:
    """One link of the chain. A failed fetch counts as an empty one."""
    try:
        articles = await source.get_news(symbols)
    except Exception as e:
        logger.warning(f"{kind.capitalize()} news fetch failed for {subscriber.email}: {e}")
        return []
    return list(articles or [])


async def resolve_news(
    subscriber: Subscriber,
    source: NewsSource,
    max_articles: int = DEFAULT_MAX_ARTICLES,
) -> list[Article]:
    """Articles for one subscriber's summary.

    Personalized news for the subscriber's symbols is used whenever it is
    non-empty, however short; only an empty (or failed) personalized fetch
    falls back to generic news. The two sources are never mixed. Truncation
    to ``max_articles`` happens after the choice and keeps provider order.
    Both sources coming back empty yields ``[]``, which is not an error.
    """
    articles: list[Article] = []

    if subscriber.symbols:
        articles = await _fetch(source, list(subscriber.symbols), subscriber, "personalized")

    if not articles:
        logger.info(f"No personalized news for {subscriber.email}, using generic news")
        articles = await _fetch(source, None, subscriber, "generic")

    if not articles:
        logger.warning(f"No news available for {subscriber.email}")

    return articles[:max_articles]
