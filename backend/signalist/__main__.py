"""Signalist CLI entry point."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

env_file = Path(__file__).parent.parent / ".env"
load_dotenv(env_file)

from signalist import __version__
from signalist.config import get_settings
from signalist.pipeline import run_daily_news_summary, run_welcome_email
from signalist.scheduler import start_scheduler
from signalist.workflow.models import RunReport, SignUpEvent

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)

CONFIG_TEMPLATE = """# Signalist Configuration
# Operational parameters for the news summary workflows.
# API keys and SMTP credentials belong in .env, not here.

workflow:
  max_articles: 6
  concurrency: 5
  run_timeout_seconds: 900
  keep_step_logs: false

retry:
  max_attempts: 3
  initial_backoff_seconds: 1.0
  backoff_multiplier: 2.0
  max_backoff_seconds: 30.0

gemini:
  model: gemini-2.5-flash-lite
  timeout_seconds: 60

finnhub:
  lookback_days: 5
  timeout_seconds: 30

mail:
  smtp_host: smtp.gmail.com
  smtp_port: 587
  sender_name: Signalist
  use_starttls: true

scheduler:
  daily_summary_cron: "0 12 * * *"
"""

SUBSCRIBERS_TEMPLATE = """# Signalist Subscribers
# One entry per user. Only users with news_email: true get the daily summary.

users: []
#  - email: ada@example.com
#    name: Ada
#    news_email: true
#    watchlist: [AAPL, MSFT]
"""


def _init_logfire() -> None:
    """Initialize Logfire if available, without failing commands."""
    try:
        from signalist.observability import initialize_logfire

        initialize_logfire(get_settings())
    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")


def _print_report(report: RunReport) -> None:
    print(f"Run ID: {report.run_id}")
    print(f"Success: {report.success}")
    print(f"Message: {report.message}\n")
    print(f"Subscribers: {report.subscribers}")
    print(f"News fetched: {report.news_fetched}")
    print(f"Summarized: {report.summarized}")
    print(f"Emails sent: {report.emails_sent}/{report.emails_attempted}")
    print(f"Skipped: {report.skipped}\n")

    if report.failures:
        print("Failures:")
        for failure in report.failures[:10]:
            print(f"  • [{failure.stage}] {failure.email}: {failure.reason}")
        if len(report.failures) > 10:
            print(f"  ... and {len(report.failures) - 10} more")
        print()


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize data directory structure and configuration files."""
    data_dir = Path("data").resolve()

    try:
        (data_dir / "runs").mkdir(parents=True, exist_ok=True)
        logger.info(f"Created data directory: {data_dir}")

        for name, template in (
            ("config.yaml", CONFIG_TEMPLATE),
            ("subscribers.yaml", SUBSCRIBERS_TEMPLATE),
        ):
            path = data_dir / name
            if path.exists():
                logger.info(f"File already exists: {path}")
                continue
            path.write_text(template)
            logger.info(f"Created template: {path}")

        print(f"\n✓ Data directory initialized at {data_dir}")
        print("\nNext steps:")
        print("1. Copy .env.example to .env and add GEMINI_API_KEY, FINNHUB_API_KEY and MAIL__* settings")
        print("2. Add users to data/subscribers.yaml")
        print("3. Run 'python -m signalist config' to verify configuration")
        print("4. Run 'python -m signalist run' to start the scheduler\n")

        return 0

    except OSError as e:
        logger.error(f"Failed to initialize: {e}")
        print(f"\n❌ Initialization failed: {e}\n")
        return 1


def cmd_config(args: argparse.Namespace) -> int:
    """Display merged configuration."""
    try:
        settings = get_settings()

        print("\n=== Signalist Configuration ===\n")
        print(f"Data Directory: {settings.data_dir}\n")

        print("Workflow:")
        print(f"  Max Articles: {settings.workflow.max_articles}")
        print(f"  Concurrency: {settings.workflow.concurrency}")
        print(f"  Run Timeout: {settings.workflow.run_timeout_seconds}s")
        print(f"  Keep Step Logs: {settings.workflow.keep_step_logs}\n")

        print("Retry:")
        print(f"  Max Attempts: {settings.retry.max_attempts}")
        print(f"  Initial Backoff: {settings.retry.initial_backoff_seconds}s")
        print(f"  Max Backoff: {settings.retry.max_backoff_seconds}s\n")

        print("Gemini:")
        print(f"  Model: {settings.gemini.model}\n")

        print("Finnhub:")
        print(f"  Lookback: {settings.finnhub.lookback_days} days\n")

        print("Mail:")
        print(f"  SMTP: {settings.mail.smtp_host}:{settings.mail.smtp_port}")
        print(f"  Sender: {settings.mail.sender or '✗ Not set'}\n")

        print("Scheduler:")
        print(f"  Daily Summary Cron: {settings.scheduler.daily_summary_cron}\n")

        print("API Keys:")
        print(f"  Gemini: {'✓ Set' if settings.gemini_api_key else '✗ Not set'}")
        print(f"  Finnhub: {'✓ Set' if settings.finnhub_api_key else '✗ Not set'}")
        print(f"  SMTP Password: {'✓ Set' if settings.mail.password else '✗ Not set'}")
        print(f"  Logfire: {'✓ Set' if settings.logfire_token else '✗ Not set'}\n")

        return 0

    except ValidationError as e:
        print("\n❌ Configuration Error:\n")
        for error in e.errors():
            print(f"  • {'.'.join(str(x) for x in error['loc'])}: {error['msg']}")
        print()
        return 1
    except Exception as e:
        logger.error(f"Failed to load config: {e}")
        print(f"\n❌ Failed to load configuration: {e}\n")
        return 1


def cmd_daily(args: argparse.Namespace) -> int:
    """Run the daily news summary once."""
    _init_logfire()

    try:
        print("\n=== Daily News Summary ===\n")

        report = asyncio.run(run_daily_news_summary(get_settings(), run_id=args.run_id))
        _print_report(report)

        return 0 if report.success else 1

    except Exception as e:
        logger.error(f"Daily summary failed: {e}", exc_info=True)
        print(f"\n❌ Daily summary failed: {e}\n")
        return 1


def cmd_welcome(args: argparse.Namespace) -> int:
    """Send the sign-up welcome email to one user."""
    _init_logfire()

    try:
        event = SignUpEvent(
            email=args.email,
            name=args.name,
            country=args.country,
            investment_goals=args.investment_goals,
            risk_tolerance=args.risk_tolerance,
            preferred_industry=args.preferred_industry,
        )

        print("\n=== Welcome Email ===\n")

        report = asyncio.run(run_welcome_email(get_settings(), event))
        print(f"✓ {report.message} ({event.email})\n")

        return 0

    except Exception as e:
        logger.error(f"Welcome email failed: {e}", exc_info=True)
        print(f"\n❌ Welcome email failed: {e}\n")
        return 1


def cmd_run(args: argparse.Namespace) -> int:
    """Start the scheduler."""
    try:
        _init_logfire()

        if args.debug:
            logging.getLogger().setLevel(logging.DEBUG)

        settings = get_settings()
        settings.require_gemini_api_key()

        print("\n=== Signalist ===\n")
        print(f"Version: {__version__}")
        print(f"Data Directory: {settings.data_dir}\n")

        print("Starting scheduler...\n")
        start_scheduler(settings)

        return 0

    except KeyboardInterrupt:
        print("\n\nReceived interrupt signal. Shutting down...\n")
        return 0
    except Exception as e:
        logger.error(f"Failed to start system: {e}", exc_info=True)
        print(f"\nFailed to start: {e}\n")
        return 1


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Signalist: AI market news summaries by email",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Signalist {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parser_init = subparsers.add_parser(
        "init",
        help="Initialize data directory and configuration files",
    )
    parser_init.set_defaults(func=cmd_init)

    parser_config = subparsers.add_parser(
        "config",
        help="Display merged configuration",
    )
    parser_config.set_defaults(func=cmd_config)

    parser_daily = subparsers.add_parser(
        "daily",
        help="Run the daily news summary once",
    )
    parser_daily.add_argument(
        "--run-id",
        default=None,
        help="Run ID to execute or resume (default: today's scheduled run)",
    )
    parser_daily.set_defaults(func=cmd_daily)

    parser_welcome = subparsers.add_parser(
        "welcome",
        help="Send the sign-up welcome email to one user",
    )
    parser_welcome.add_argument("--email", required=True, help="New user's email")
    parser_welcome.add_argument("--name", help="New user's name")
    parser_welcome.add_argument("--country", help="Country")
    parser_welcome.add_argument("--investment-goals", help="Investment goals")
    parser_welcome.add_argument("--risk-tolerance", help="Risk tolerance")
    parser_welcome.add_argument("--preferred-industry", help="Preferred industry")
    parser_welcome.set_defaults(func=cmd_welcome)

    parser_run = subparsers.add_parser(
        "run",
        help="Start the scheduler",
    )
    parser_run.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser_run.set_defaults(func=cmd_run)

    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
