"""Logfire cloud observability initialization and instrumentation."""

import logging

import logfire

from signalist import __version__
from signalist.config import Settings

logger = logging.getLogger(__name__)


def initialize_logfire(settings: Settings) -> None:
    """
    Initialize Logfire with instrumentation.

    Must be called ONCE at application startup, BEFORE any workflow runs.

    This function configures Logfire cloud tracking and instruments:
    - HTTPX clients (Gemini API, Finnhub API)
    - Python logging (bridges to Logfire)

    Workflow, stage and step spans are emitted by the engine itself.

    Args:
        settings: Application settings containing Logfire token
    """
    if not settings.logfire_token:
        logger.warning("Logfire token not set - observability disabled")
        return

    try:
        logfire.configure(
            token=settings.logfire_token,
            service_name="signalist",
            service_version=__version__,
        )

        logfire.instrument_httpx()

        root_logger = logging.getLogger()
        root_logger.addHandler(logfire.LogfireLoggingHandler())

        logger.info("✓ Logfire cloud tracking initialized")

    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")
