"""Per-item outcomes and the failure isolation boundary.

Every per-subscriber operation resolves to exactly one of ``Success`` or
``Failure``. ``isolate`` is the only place where a subscriber's exception is
converted into a value, so sibling operations keep running.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

T = TypeVar("T")
ItemT = TypeVar("ItemT")

CANCELLED = "cancelled"


class ErrorInfo(BaseModel):
    """Why one subscriber's operation failed at one stage."""

    model_config = ConfigDict(frozen=True)

    subscriber: str
    stage: str
    message: str
    error_type: str | None = None

    @property
    def cancelled(self) -> bool:
        return self.message == CANCELLED


class Success(BaseModel, Generic[T]):
    """Operation completed with a value."""

    model_config = ConfigDict(frozen=True)

    ok: Literal[True] = True
    value: T


class Failure(BaseModel):
    """Operation raised; the error is carried instead of propagated."""

    model_config = ConfigDict(frozen=True)

    ok: Literal[False] = False
    error: ErrorInfo


Outcome = Union[Success[T], Failure]


def identify_item(item: Any) -> str:
    """Best-effort subscriber identity for logs and error records."""
    subscriber = getattr(item, "subscriber", None)
    if subscriber is not None:
        return identify_item(subscriber)
    email = getattr(item, "email", None)
    if email:
        return str(email)
    return str(item)


def cancelled_outcome(item: Any, stage: str) -> Failure:
    """Failure recorded for work that a run-level timeout never let finish."""
    return Failure(
        error=ErrorInfo(
            subscriber=identify_item(item),
            stage=stage,
            message=CANCELLED,
            error_type="CancelledError",
        )
    )


async def isolate(
    item: ItemT,
    operation: Callable[[ItemT], Awaitable[T]],
    stage: str,
    identify: Callable[[Any], str] = identify_item,
) -> Outcome[T]:
    """Run ``operation(item)`` and fold any exception into a ``Failure``.

    Never raises ``Exception``. ``asyncio.CancelledError`` is a
    ``BaseException`` and still propagates so cancellation keeps working.
    """
    try:
        value = await operation(item)
    except Exception as e:
        subscriber = identify(item)
        message = str(e) or type(e).__name__
        logger.warning(f"{stage} failed for {subscriber}: {message}")
        return Failure(
            error=ErrorInfo(
                subscriber=subscriber,
                stage=stage,
                message=message,
                error_type=type(e).__name__,
            )
        )

    return Success(value=value)
