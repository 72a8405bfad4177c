"""
Unit Tests: Step Executor

Test cases:
- Same step name runs the operation once and replays the value
- Retryable errors are retried with backoff, non-retryable ones fail fast
- Recorded failures replay as failures
- Typed values survive a round trip through the JSONL log
- A new executor on the same log file resumes instead of re-running
"""

import asyncio

import pytest

from signalist.services.finnhub.models import Article
from signalist.storage.step_log import FileStepLog, InMemoryStepLog, open_step_log, step_log_path
from signalist.workflow.exceptions import StepFailure
from signalist.workflow.steps import RetryPolicy, StepExecutor, StepRecord


class Flaky(Exception):
    retryable = True


class Fatal(Exception):
    retryable = False


def _executor(log=None, max_attempts: int = 3, sleeps: list | None = None) -> StepExecutor:
    async def sleep(seconds: float) -> None:
        if sleeps is not None:
            sleeps.append(seconds)

    return StepExecutor(
        "run-1",
        log if log is not None else InMemoryStepLog(),
        retry=RetryPolicy(max_attempts=max_attempts, initial_backoff_seconds=1.0),
        sleep=sleep,
    )


def test_same_name_executes_once() -> None:
    executor = _executor()
    calls = []

    async def send() -> str:
        calls.append(1)
        return f"sent-{len(calls)}"

    async def run() -> None:
        first = await executor.run("send-news-email-a@example.com", send)
        second = await executor.run("send-news-email-a@example.com", send)
        assert first == second == "sent-1"

    asyncio.run(run())
    assert len(calls) == 1


def test_distinct_names_each_execute() -> None:
    executor = _executor()
    calls = []

    async def run() -> None:
        for email in ("a@example.com", "b@example.com"):

            async def op(email=email) -> str:
                calls.append(email)
                return email

            await executor.run(f"summarize-news-{email}", op)

    asyncio.run(run())
    assert calls == ["a@example.com", "b@example.com"]


def test_concurrent_requests_for_one_name_share_one_execution() -> None:
    executor = _executor()
    calls = []

    async def slow() -> int:
        calls.append(1)
        await asyncio.sleep(0.01)
        return 42

    async def run() -> list[int]:
        return await asyncio.gather(*(executor.run("get-all-users", slow) for _ in range(5)))

    assert asyncio.run(run()) == [42] * 5
    assert len(calls) == 1


def test_retryable_error_is_retried_with_backoff() -> None:
    sleeps: list[float] = []
    executor = _executor(sleeps=sleeps)
    attempts = []

    async def op() -> str:
        attempts.append(1)
        if len(attempts) < 3:
            raise Flaky("temporary")
        return "ok"

    assert asyncio.run(executor.run("fetch", op)) == "ok"
    assert len(attempts) == 3
    assert sleeps == [1.0, 2.0]
    assert executor.log.get("fetch").attempts == 3


def test_plain_exceptions_are_retried() -> None:
    executor = _executor(max_attempts=2)
    attempts = []

    async def op() -> None:
        attempts.append(1)
        raise ValueError("boom")

    with pytest.raises(StepFailure) as exc_info:
        asyncio.run(executor.run("fetch", op))

    assert len(attempts) == 2
    assert exc_info.value.name == "fetch"
    assert exc_info.value.cause == "boom"
    assert exc_info.value.error_type == "ValueError"
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_non_retryable_error_fails_fast() -> None:
    sleeps: list[float] = []
    executor = _executor(sleeps=sleeps)
    attempts = []

    async def op() -> None:
        attempts.append(1)
        raise Fatal("bad request")

    with pytest.raises(StepFailure):
        asyncio.run(executor.run("send", op))

    assert len(attempts) == 1
    assert sleeps == []


def test_recorded_failure_replays_without_rerunning() -> None:
    executor = _executor(max_attempts=1)
    attempts = []

    async def op() -> None:
        attempts.append(1)
        raise Fatal("rejected")

    async def run() -> None:
        for _ in range(2):
            with pytest.raises(StepFailure, match="rejected"):
                await executor.run("send", op)

    asyncio.run(run())
    assert len(attempts) == 1
    assert executor.log.get("send").status == "failed"


def test_cancellation_is_not_recorded() -> None:
    executor = _executor()

    async def hang() -> None:
        await asyncio.sleep(10)

    async def run() -> None:
        task = asyncio.create_task(executor.run("summarize", hang))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(run())
    assert executor.log.get("summarize") is None


def test_backoff_is_capped() -> None:
    policy = RetryPolicy(initial_backoff_seconds=10, backoff_multiplier=3, max_backoff_seconds=25)
    assert [policy.backoff(n) for n in (1, 2, 3)] == [10, 25, 25]


def test_typed_values_replay_from_file(tmp_path) -> None:
    path = tmp_path / "run.jsonl"
    articles = [Article(headline="Fed holds rates", url="https://example.com/fed", sentiment=0.4)]

    async def fetch() -> list[Article]:
        return articles

    async def never() -> list[Article]:
        raise AssertionError("replayed step must not run")

    asyncio.run(_executor(FileStepLog(path)).run("fetch-user-news-a", fetch, result_type=list[Article]))

    replayed = asyncio.run(
        _executor(FileStepLog(path)).run("fetch-user-news-a", never, result_type=list[Article])
    )
    assert replayed == articles
    assert replayed[0].sentiment == 0.4


def test_file_log_skips_torn_last_line(tmp_path) -> None:
    path = tmp_path / "run.jsonl"
    record = StepRecord(name="get-all-users", status="completed", value=[])
    path.write_text(record.model_dump_json() + "\n" + '{"name": "summ')

    log = FileStepLog(path)
    assert log.get("get-all-users") is not None
    assert [r.name for r in log.records()] == ["get-all-users"]


def test_discard_removes_log_file(tmp_path) -> None:
    log = open_step_log(tmp_path, "daily-news-summary-2026-10-19")
    log.append(StepRecord(name="get-all-users", status="completed", value=[]))
    assert log.path.exists()

    log.discard()
    assert not log.path.exists()
    assert log.get("get-all-users") is None


def test_step_log_path_is_filesystem_safe(tmp_path) -> None:
    path = step_log_path(tmp_path, "../odd run/id")
    assert path.parent == tmp_path / "runs"
    assert "/" not in path.name
    assert path.suffix == ".jsonl"
