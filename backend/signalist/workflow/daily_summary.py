"""Daily news summary workflow: get users -> fetch news -> summarize -> send.

States:
- get-all-users (durable, fatal on failure or when it outlives the run
  deadline). No users ends the run with success=False before any other step
  runs.
- resolve-email-date (durable): the subject date is fixed once per run, so a
  run resumed after midnight keeps its original date.
- fetch: one isolated ``fetch-user-news-{email}`` step per subscriber. A
  failed fetch continues with an empty article list.
- summarize: one isolated ``summarize-news-{email}`` step per subscriber.
  A rejected or empty provider reply gives a null summary, and that
  subscriber's email is skipped.
- send-news-emails (durable): fans out ``send-news-email-{email}`` steps for
  every non-null summary and fans the results into a DeliveryReport.

Stages run strictly one after another; within a stage subscribers run
concurrently up to ``WorkflowConfig.concurrency``.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Awaitable, Callable
from uuid import uuid4

import logfire

from signalist.config import RetryConfig, WorkflowConfig
from signalist.services.finnhub.models import Article
from signalist.services.gemini.models import EmptyResponse, HttpErrorResponse, OkResponse
from signalist.storage.step_log import InMemoryStepLog

from .collaborators import Mailer, NewsSource, SubscriberSource, SummaryProvider
from .exceptions import MissingCredentialError, RunAbortedError, StepFailure
from .fanout import run_stage
from .models import DeliveryReport, ItemFailure, RunReport, Subscriber, Summary, WorkItem
from .news import resolve_news
from .outcome import CANCELLED, Failure, Outcome, Success
from .prompts import build_news_summary_prompt
from .steps import RetryPolicy, StepExecutor, StepLog

logger = logging.getLogger(__name__)

GET_USERS_STEP = "get-all-users"
EMAIL_DATE_STEP = "resolve-email-date"
SEND_EMAILS_STEP = "send-news-emails"

NO_USERS_MESSAGE = "No users found for news email"


def new_run_id(workflow_id: str) -> str:
    return f"{workflow_id}-{uuid4().hex[:12]}"


def format_email_date(day: date) -> str:
    """Long-form date for the email subject, e.g. 'Monday, October 19, 2026'."""
    return f"{day:%A, %B} {day.day}, {day.year}"


def _in_memory_log(run_id: str) -> StepLog:
    return InMemoryStepLog()


def _failures(
    results: list[tuple[Any, Outcome[Any]]],
) -> list[ItemFailure]:
    return [
        ItemFailure(email=outcome.error.subscriber, stage=outcome.error.stage, reason=outcome.error.message)
        for _, outcome in results
        if isinstance(outcome, Failure)
    ]


class DailyNewsSummaryWorkflow:
    """Sends every news subscriber an AI summary of their watchlist news."""

    workflow_id = "daily-news-summary"

    def __init__(
        self,
        subscribers: SubscriberSource,
        news: NewsSource,
        provider: SummaryProvider,
        mailer: Mailer,
        gemini_api_key: str,
        config: WorkflowConfig | None = None,
        retry: RetryPolicy | RetryConfig | None = None,
        step_log_factory: Callable[[str], StepLog] | None = None,
        today: Callable[[], date] = date.today,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.subscribers = subscribers
        self.news = news
        self.provider = provider
        self.mailer = mailer
        self.gemini_api_key = gemini_api_key
        self.config = config or WorkflowConfig()
        if isinstance(retry, RetryConfig):
            retry = RetryPolicy.from_config(retry)
        self.retry = retry or RetryPolicy()
        self._step_log_factory = step_log_factory or _in_memory_log
        self._today = today
        self._sleep = sleep

    async def run(self, run_id: str | None = None) -> RunReport:
        """Execute (or resume) one run.

        Re-using ``run_id`` against a persistent step log resumes the run:
        steps already recorded are replayed, not repeated.

        Raises:
            MissingCredentialError: No provider API key was configured
            RunAbortedError: A run-level step failed after retries
        """
        if not self.gemini_api_key:
            raise MissingCredentialError("GEMINI_API_KEY")

        run_id = run_id or new_run_id(self.workflow_id)
        executor = StepExecutor(
            run_id,
            self._step_log_factory(run_id),
            retry=self.retry,
            sleep=self._sleep,
        )

        deadline = None
        if self.config.run_timeout_seconds:
            deadline = asyncio.get_running_loop().time() + self.config.run_timeout_seconds

        logger.info(f"Running {self.workflow_id} (run_id={run_id})")

        with logfire.span("workflow {workflow}", workflow=self.workflow_id, run_id=run_id):
            try:
                report = await self._execute(executor, run_id, deadline)
            except RunAbortedError:
                self._finish(executor)
                raise

        self._finish(executor)
        logger.info(f"{self.workflow_id} finished: {report.message}")
        return report

    async def _execute(
        self,
        executor: StepExecutor,
        run_id: str,
        deadline: float | None,
    ) -> RunReport:
        try:
            async with asyncio.timeout_at(deadline):
                users = await executor.run(
                    GET_USERS_STEP,
                    self.subscribers.get_all_users_for_news_email,
                    result_type=list[Subscriber],
                )
        except StepFailure as e:
            raise RunAbortedError(run_id, GET_USERS_STEP, e) from e
        except TimeoutError as e:
            logger.error(f"{GET_USERS_STEP} did not finish before the run deadline")
            raise RunAbortedError(run_id, GET_USERS_STEP, e) from e

        users = self._unique(users or [])
        logger.info(f"Users fetched: {len(users)}")

        if not users:
            logger.warning(NO_USERS_MESSAGE)
            return RunReport(run_id=run_id, success=False, message=NO_USERS_MESSAGE)

        email_date = await executor.run(
            EMAIL_DATE_STEP,
            self._email_date,
            result_type=str,
        )

        fetched = await run_stage(
            users,
            self._fetch_news,
            lambda user: f"fetch-user-news-{user.email}",
            executor=executor,
            stage="fetch",
            concurrency=self.config.concurrency,
            deadline=deadline,
            result_type=list[Article],
        )
        news_items = [
            WorkItem(
                subscriber=user,
                payload=outcome.value if isinstance(outcome, Success) else [],
            )
            for user, outcome in fetched
        ]

        summarized = await run_stage(
            news_items,
            self._summarize,
            lambda item: f"summarize-news-{item.subscriber.email}",
            executor=executor,
            stage="summarize",
            concurrency=self.config.concurrency,
            deadline=deadline,
            result_type=Summary,
        )

        recipients: list[WorkItem] = []
        no_summary: list[ItemFailure] = []
        for item, outcome in summarized:
            if isinstance(outcome, Success) and outcome.value.content:
                recipients.append(WorkItem(subscriber=item.subscriber, payload=outcome.value.content))
            elif isinstance(outcome, Success):
                no_summary.append(
                    ItemFailure(
                        email=item.subscriber.email,
                        stage="summarize",
                        reason=outcome.value.reason or "no summary",
                    )
                )

        delivery = await self._send_stage(executor, run_id, recipients, email_date, deadline)

        failures = _failures(fetched) + _failures(summarized) + no_summary + delivery.failures
        timed_out = any(f.reason == CANCELLED for f in failures)
        summaries = len(recipients)

        if timed_out:
            message = (
                f"Daily news summary timed out: {delivery.sent}/{delivery.attempted} "
                f"emails sent before the run deadline"
            )
        else:
            message = (
                f"Daily news summary emails sent: {delivery.sent}/{delivery.attempted} "
                f"delivered, {len(users) - summaries} skipped"
            )

        return RunReport(
            run_id=run_id,
            success=not timed_out,
            message=message,
            subscribers=len(users),
            news_fetched=sum(1 for _, outcome in fetched if isinstance(outcome, Success)),
            summarized=summaries,
            emails_attempted=delivery.attempted,
            emails_sent=delivery.sent,
            skipped=len(users) - summaries,
            timed_out=timed_out,
            failures=tuple(failures),
        )

    async def _send_stage(
        self,
        executor: StepExecutor,
        run_id: str,
        recipients: list[WorkItem],
        email_date: str,
        deadline: float | None,
    ) -> DeliveryReport:
        if deadline is not None and asyncio.get_running_loop().time() >= deadline:
            logger.warning(f"Run deadline passed before sending; {len(recipients)} emails cancelled")
            return DeliveryReport(
                failures=[
                    ItemFailure(email=item.subscriber.email, stage="send", reason=CANCELLED)
                    for item in recipients
                ]
            )

        try:
            return await executor.run(
                SEND_EMAILS_STEP,
                lambda: self._send_all(executor, recipients, email_date, deadline),
                result_type=DeliveryReport,
            )
        except StepFailure as e:
            raise RunAbortedError(run_id, SEND_EMAILS_STEP, e) from e

    async def _email_date(self) -> str:
        return format_email_date(self._today())

    async def _fetch_news(self, user: Subscriber) -> list[Article]:
        symbols = await self.subscribers.get_watchlist_symbols_by_email(user.email)
        subscriber = user.model_copy(update={"symbols": tuple(symbols or ())})
        return await resolve_news(subscriber, self.news, max_articles=self.config.max_articles)

    async def _summarize(self, item: WorkItem) -> Summary:
        email = item.subscriber.email
        prompt = build_news_summary_prompt(item.payload)

        if not self.gemini_api_key:
            raise MissingCredentialError("GEMINI_API_KEY")

        response = await self.provider.generate(prompt, api_key=self.gemini_api_key)

        if isinstance(response, OkResponse):
            return Summary(content=response.text)
        if isinstance(response, HttpErrorResponse):
            logger.error(f"Gemini API error for {email}: {response.status} {response.body}")
            return Summary(reason=f"provider returned HTTP {response.status}")
        if isinstance(response, EmptyResponse):
            logger.warning(f"Gemini returned no summary for {email}: {response.reason}")
            return Summary(reason=response.reason)
        raise TypeError(f"Unexpected provider response: {type(response).__name__}")

    async def _send_all(
        self,
        executor: StepExecutor,
        recipients: list[WorkItem],
        email_date: str,
        deadline: float | None,
    ) -> DeliveryReport:
        if not recipients:
            logger.info("No summaries to send")
            return DeliveryReport()

        async def _send_one(item: WorkItem) -> bool:
            subscriber = item.subscriber
            logger.info(
                f"Sending news summary to {subscriber.display_name} <{subscriber.email}>: "
                f"{item.payload[:80]}..."
            )
            await self.mailer.send_news_summary_email(
                email=item.subscriber.email,
                date=email_date,
                news_content=item.payload,
            )
            return True

        results = await run_stage(
            recipients,
            _send_one,
            lambda item: f"send-news-email-{item.subscriber.email}",
            executor=executor,
            stage="send",
            concurrency=self.config.concurrency,
            deadline=deadline,
            result_type=bool,
        )

        failures = _failures(results)
        return DeliveryReport(
            attempted=len(results),
            sent=len(results) - len(failures),
            failures=failures,
        )

    @staticmethod
    def _unique(users: list[Subscriber]) -> list[Subscriber]:
        """Drop repeated emails; step names are keyed by email."""
        seen: set[str] = set()
        unique: list[Subscriber] = []
        for user in users:
            if user.email in seen:
                logger.warning(f"Duplicate subscriber {user.email} ignored")
                continue
            seen.add(user.email)
            unique.append(user)
        return unique

    def _finish(self, executor: StepExecutor) -> None:
        if not self.config.keep_step_logs:
            executor.discard()
