"""Production wiring: settings -> clients -> workflow run."""

import logging
from datetime import date
from functools import partial

from signalist.config import Settings
from signalist.services.finnhub import FinnhubConfig, create_finnhub_client
from signalist.services.gemini import GeminiConfig, create_gemini_client
from signalist.services.mailer import MailerConfig, SMTPMailer, create_mailer
from signalist.storage.step_log import open_step_log
from signalist.storage.subscribers import SubscriberDirectory
from signalist.workflow.daily_summary import DailyNewsSummaryWorkflow
from signalist.workflow.models import RunReport, SignUpEvent
from signalist.workflow.welcome import WelcomeEmailWorkflow

logger = logging.getLogger("signalist.pipeline")


def daily_run_id(day: date | None = None) -> str:
    """Run id for the scheduled daily run; a same-day restart resumes it."""
    day = day or date.today()
    return f"{DailyNewsSummaryWorkflow.workflow_id}-{day.isoformat()}"


def _gemini_config(settings: Settings) -> GeminiConfig:
    return GeminiConfig(**settings.gemini.model_dump())


def _mailer(settings: Settings) -> SMTPMailer:
    return create_mailer(MailerConfig(**settings.mail.model_dump()))


async def run_daily_news_summary(settings: Settings, run_id: str | None = None) -> RunReport:
    """Run (or resume) the daily news summary once."""
    api_key = settings.require_gemini_api_key()
    finnhub_config = FinnhubConfig(**settings.finnhub.model_dump())

    async with (
        create_finnhub_client(settings.finnhub_api_key, config=finnhub_config) as news,
        create_gemini_client(_gemini_config(settings)) as provider,
    ):
        workflow = DailyNewsSummaryWorkflow(
            subscribers=SubscriberDirectory(settings.data_dir / "subscribers.yaml"),
            news=news,
            provider=provider,
            mailer=_mailer(settings),
            gemini_api_key=api_key,
            config=settings.workflow,
            retry=settings.retry,
            step_log_factory=partial(open_step_log, settings.data_dir),
        )
        return await workflow.run(run_id=run_id or daily_run_id())


async def run_welcome_email(settings: Settings, event: SignUpEvent) -> RunReport:
    """Run the sign-up workflow for one new user."""
    api_key = settings.require_gemini_api_key()

    async with create_gemini_client(_gemini_config(settings)) as provider:
        workflow = WelcomeEmailWorkflow(
            provider=provider,
            mailer=_mailer(settings),
            gemini_api_key=api_key,
            retry=settings.retry,
            step_log_factory=partial(open_step_log, settings.data_dir),
            keep_step_logs=settings.workflow.keep_step_logs,
            run_timeout_seconds=settings.workflow.run_timeout_seconds,
        )
        return await workflow.run(event)
