"""Job scheduler using APScheduler."""

import asyncio
import logging
from typing import NoReturn

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from signalist.config import Settings
from signalist.pipeline import daily_run_id, run_daily_news_summary

logger = logging.getLogger(__name__)


def daily_summary_job(settings: Settings) -> None:
    """Scheduler job wrapper for the daily news summary (blocking)."""
    run_id = daily_run_id()
    try:
        report = asyncio.run(run_daily_news_summary(settings, run_id=run_id))
        logger.info(f"✓ Daily summary ({run_id}): {report.message}")
    except Exception as e:
        logger.error(f"Daily summary {run_id} failed: {e}", exc_info=True)


def build_scheduler(settings: Settings) -> BlockingScheduler:
    scheduler = BlockingScheduler()

    scheduler.add_job(
        daily_summary_job,
        CronTrigger.from_crontab(settings.scheduler.daily_summary_cron),
        args=[settings],
        id="daily-news-summary",
        name="Daily News Summary",
        max_instances=1,
        coalesce=True,
    )
    logger.info(
        f"Registered job: Daily News Summary (cron '{settings.scheduler.daily_summary_cron}')"
    )
    return scheduler


def start_scheduler(settings: Settings) -> NoReturn:
    """Start the APScheduler with configured jobs."""
    scheduler = build_scheduler(settings)

    try:
        logger.info("✓ Scheduler starting...")
        logger.info(f"✓ {len(scheduler.get_jobs())} jobs registered")
        logger.info("Press Ctrl+C to stop\n")

        scheduler.start()

    except (KeyboardInterrupt, SystemExit):
        logger.info("\nReceived interrupt signal")
        scheduler.shutdown()
        logger.info("✓ Scheduler stopped cleanly")
