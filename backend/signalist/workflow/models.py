"""Data models for workflow runs."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class Subscriber(BaseModel):
    """A user who receives notification emails. Immutable for a run."""

    model_config = ConfigDict(frozen=True)

    email: str
    name: str | None = None
    symbols: tuple[str, ...] = ()

    @property
    def display_name(self) -> str:
        return self.name or self.email.split("@", 1)[0]


class WorkItem(BaseModel, Generic[T]):
    """One subscriber paired with the payload derived for them by a stage."""

    model_config = ConfigDict(frozen=True)

    subscriber: Subscriber
    payload: T


class Summary(BaseModel):
    """Result of the summarize step; ``content`` is None when the provider
    produced nothing usable and the subscriber's email is skipped."""

    content: str | None = None
    reason: str | None = None


class ItemFailure(BaseModel):
    """One subscriber's failure at one stage."""

    model_config = ConfigDict(frozen=True)

    email: str
    stage: str
    reason: str


class DeliveryReport(BaseModel):
    """Fan-in of the send stage."""

    attempted: int = 0
    sent: int = 0
    failures: list[ItemFailure] = Field(default_factory=list)


class RunReport(BaseModel):
    """Aggregate result of one workflow run, returned to the trigger."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    success: bool
    message: str
    subscribers: int = 0
    news_fetched: int = 0
    summarized: int = 0
    emails_attempted: int = 0
    emails_sent: int = 0
    skipped: int = 0
    timed_out: bool = False
    failures: tuple[ItemFailure, ...] = ()


class SignUpEvent(BaseModel):
    """Payload of the ``app/user.created`` trigger."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    email: str
    name: str | None = None
    country: str | None = None
    investment_goals: str | None = Field(default=None, alias="investmentGoals")
    risk_tolerance: str | None = Field(default=None, alias="riskTolerance")
    preferred_industry: str | None = Field(default=None, alias="preferredIndustry")
