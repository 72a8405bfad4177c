"""Sign-up workflow: personalized intro, then the welcome email."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

import logfire

from signalist.config import RetryConfig
from signalist.services.gemini.models import OkResponse
from signalist.storage.step_log import InMemoryStepLog

from .collaborators import Mailer, SummaryProvider
from .daily_summary import new_run_id
from .exceptions import MissingCredentialError, RunAbortedError, StepFailure
from .models import RunReport, SignUpEvent
from .prompts import FALLBACK_WELCOME_INTRO, build_welcome_prompt
from .steps import RetryPolicy, StepExecutor, StepLog

logger = logging.getLogger(__name__)

GENERATE_INTRO_STEP = "call-gemini-api"
SEND_WELCOME_STEP = "send-welcome-email"


class WelcomeEmailWorkflow:
    """Welcomes one new user. Both steps are run-level: a failure aborts."""

    workflow_id = "sign-up-email"

    def __init__(
        self,
        provider: SummaryProvider,
        mailer: Mailer,
        gemini_api_key: str,
        retry: RetryPolicy | RetryConfig | None = None,
        step_log_factory: Callable[[str], StepLog] | None = None,
        keep_step_logs: bool = False,
        run_timeout_seconds: float = 0.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.provider = provider
        self.mailer = mailer
        self.gemini_api_key = gemini_api_key
        if isinstance(retry, RetryConfig):
            retry = RetryPolicy.from_config(retry)
        self.retry = retry or RetryPolicy()
        self._step_log_factory = step_log_factory or (lambda run_id: InMemoryStepLog())
        self.keep_step_logs = keep_step_logs
        self.run_timeout_seconds = run_timeout_seconds
        self._sleep = sleep

    async def run(self, event: SignUpEvent, run_id: str | None = None) -> RunReport:
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
        if self.run_timeout_seconds:
            deadline = asyncio.get_running_loop().time() + self.run_timeout_seconds

        with logfire.span("workflow {workflow}", workflow=self.workflow_id, run_id=run_id):
            stage = GENERATE_INTRO_STEP
            try:
                async with asyncio.timeout_at(deadline):
                    intro = await executor.run(
                        GENERATE_INTRO_STEP,
                        lambda: self._generate_intro(event),
                        result_type=str,
                    )
                    stage = SEND_WELCOME_STEP
                    await executor.run(
                        SEND_WELCOME_STEP,
                        lambda: self._send(event, intro),
                        result_type=bool,
                    )
            except (StepFailure, TimeoutError) as e:
                if isinstance(e, TimeoutError):
                    logger.error(f"{stage} did not finish before the run deadline")
                if not self.keep_step_logs:
                    executor.discard()
                raise RunAbortedError(run_id, stage, e) from e

        if not self.keep_step_logs:
            executor.discard()

        personalized = intro != FALLBACK_WELCOME_INTRO
        logger.info(
            f"Welcome email sent to {event.email} "
            f"({'personalized' if personalized else 'fallback'} intro)"
        )
        return RunReport(
            run_id=run_id,
            success=True,
            message="Welcome email sent successfully",
            subscribers=1,
            summarized=1 if personalized else 0,
            emails_attempted=1,
            emails_sent=1,
        )

    async def _generate_intro(self, event: SignUpEvent) -> str:
        response = await self.provider.generate(
            build_welcome_prompt(event),
            api_key=self.gemini_api_key,
        )
        if isinstance(response, OkResponse):
            return response.text

        logger.warning(f"Using fallback intro for {event.email}: {response!r}")
        return FALLBACK_WELCOME_INTRO

    async def _send(self, event: SignUpEvent, intro: str) -> bool:
        await self.mailer.send_welcome_email(
            email=event.email,
            name=event.name,
            intro=intro,
        )
        return True
