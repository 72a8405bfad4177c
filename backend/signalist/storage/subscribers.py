"""Subscriber directory backed by data/subscribers.yaml.

File layout::

    users:
      - email: ada@example.com
        name: Ada
        news_email: true
        watchlist: [AAPL, MSFT]
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from signalist.workflow.models import Subscriber

logger = logging.getLogger(__name__)


class UserEntry(BaseModel):
    """One user row in subscribers.yaml."""

    email: str
    name: str | None = None
    news_email: bool = True
    watchlist: list[str] = Field(default_factory=list)


class SubscriberFile(BaseModel):
    users: list[UserEntry] = Field(default_factory=list)


class SubscriberDirectory:
    """Reads users and watchlists from YAML on every call."""

    def __init__(self, path: Path):
        self.path = path

    def _load(self) -> SubscriberFile:
        if not self.path.exists():
            logger.warning(f"Subscriber file not found: {self.path}")
            return SubscriberFile()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Corrupted YAML in subscriber file: {e}")
            raise

        if not raw_data:
            logger.warning(f"Empty subscriber file: {self.path}")
            return SubscriberFile()

        return SubscriberFile(**raw_data)

    async def get_all_users_for_news_email(self) -> list[Subscriber]:
        """Users opted in to the daily news email."""
        return [
            Subscriber(email=user.email, name=user.name)
            for user in self._load().users
            if user.news_email and user.email
        ]

    async def get_watchlist_symbols_by_email(self, email: str) -> list[str]:
        """Upper-cased, de-duplicated watchlist symbols in file order."""
        for user in self._load().users:
            if user.email.lower() == email.lower():
                return list(dict.fromkeys(s.strip().upper() for s in user.watchlist if s.strip()))
        return []
