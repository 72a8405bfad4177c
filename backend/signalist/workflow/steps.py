"""Durable step execution.

A step is a named unit of work whose result is checkpointed in a step log.
Asking for the same name again in the same run returns the recorded value
(or re-raises the recorded failure) without invoking the operation, which is
what keeps side effects such as email sends from repeating after a restart.

Step names must be unique within a run. Per-subscriber steps embed the
subscriber identity in the name (``summarize-news-{email}``); two items that
share a name share one recorded outcome.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Literal, Protocol, TypeVar

import logfire
from pydantic import BaseModel, Field, TypeAdapter

from .exceptions import StepFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StepRecord(BaseModel):
    """Checkpoint entry for one executed step."""

    name: str
    status: Literal["completed", "failed"]
    value: Any = None
    error: str | None = None
    error_type: str | None = None
    attempts: int = 1
    recorded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class StepLog(Protocol):
    """Storage for step records, keyed by step name."""

    def get(self, name: str) -> StepRecord | None: ...

    def append(self, record: StepRecord) -> None: ...

    def records(self) -> list[StepRecord]: ...

    def discard(self) -> None: ...


class RetryPolicy(BaseModel):
    """Bounded retries with exponential backoff."""

    max_attempts: int = Field(default=3, ge=1)
    initial_backoff_seconds: float = 1.0
    backoff_multiplier: float = 2.0
    max_backoff_seconds: float = 30.0

    @classmethod
    def from_config(cls, config: BaseModel) -> RetryPolicy:
        """Build from the ``retry`` settings section."""
        return cls.model_validate(config.model_dump())

    def backoff(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        wait = self.initial_backoff_seconds * self.backoff_multiplier ** (attempt - 1)
        return min(wait, self.max_backoff_seconds)


def _is_retryable(error: Exception) -> bool:
    return getattr(error, "retryable", True) is not False


class StepExecutor:
    """Runs named steps at most once per run against a step log."""

    def __init__(
        self,
        run_id: str,
        log: StepLog,
        retry: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.run_id = run_id
        self.log = log
        self.retry = retry or RetryPolicy()
        self._sleep = sleep
        self._locks: dict[str, asyncio.Lock] = {}

    async def run(
        self,
        name: str,
        operation: Callable[[], Awaitable[T]],
        result_type: Any = None,
    ) -> T:
        """Execute ``operation`` once under ``name`` and checkpoint its result.

        Args:
            name: Step name, unique within the run
            operation: Zero-argument coroutine function doing the work
            result_type: Type used to encode the value for the log and to
                decode it on replay. Defaults to plain JSON data.

        Raises:
            StepFailure: The operation failed on its last allowed attempt, or
                a failure was already recorded under this name.
        """
        lock = self._locks.setdefault(name, asyncio.Lock())
        async with lock:
            record = self.log.get(name)
            if record is not None:
                logger.debug(f"Replaying step '{name}' from log ({record.status})")
                return self._replay(record, result_type)

            with logfire.span("step {step}", step=name, run_id=self.run_id):
                return await self._execute(name, operation, result_type)

    async def _execute(
        self,
        name: str,
        operation: Callable[[], Awaitable[T]],
        result_type: Any,
    ) -> T:
        attempt = 0

        while True:
            attempt += 1
            try:
                value = await operation()
            except Exception as e:
                message = str(e) or type(e).__name__

                if _is_retryable(e) and attempt < self.retry.max_attempts:
                    wait_time = self.retry.backoff(attempt)
                    logger.warning(
                        f"Step '{name}' failed (attempt {attempt}/"
                        f"{self.retry.max_attempts}): {message}. "
                        f"Retrying in {wait_time:.1f}s..."
                    )
                    await self._sleep(wait_time)
                    continue

                self.log.append(
                    StepRecord(
                        name=name,
                        status="failed",
                        error=message,
                        error_type=type(e).__name__,
                        attempts=attempt,
                    )
                )
                logger.error(f"Step '{name}' failed after {attempt} attempt(s): {message}")
                raise StepFailure(name, message, type(e).__name__) from e

            self.log.append(
                StepRecord(
                    name=name,
                    status="completed",
                    value=_adapter(result_type).dump_python(value, mode="json"),
                    attempts=attempt,
                )
            )
            return value

    def _replay(self, record: StepRecord, result_type: Any) -> Any:
        if record.status == "failed":
            raise StepFailure(record.name, record.error or "failed", record.error_type)
        if result_type is None:
            return record.value
        return _adapter(result_type).validate_python(record.value)

    def discard(self) -> None:
        """Drop the log once the run has reached a terminal state."""
        self.log.discard()


_ADAPTERS: dict[Any, TypeAdapter] = {}


def _adapter(result_type: Any) -> TypeAdapter:
    key = Any if result_type is None else result_type
    adapter = _ADAPTERS.get(key)
    if adapter is None:
        adapter = TypeAdapter(key)
        _ADAPTERS[key] = adapter
    return adapter
