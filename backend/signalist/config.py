"""Configuration management using Pydantic Settings."""

import logging
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from signalist.workflow.exceptions import MissingCredentialError

logger = logging.getLogger(__name__)


class WorkflowConfig(BaseModel):
    """Fan-out and run-level limits for workflow execution."""

    max_articles: int = Field(default=6, ge=1)
    concurrency: int = Field(default=5, ge=1)  # Per-stage fan-out cap
    run_timeout_seconds: float = Field(default=900.0, ge=0)  # 0 disables
    keep_step_logs: bool = False


class RetryConfig(BaseModel):
    """Bounded retry policy applied by the step executor."""

    max_attempts: int = Field(default=3, ge=1)
    initial_backoff_seconds: float = 1.0
    backoff_multiplier: float = 2.0
    max_backoff_seconds: float = 30.0


class GeminiSection(BaseModel):
    """Generative-text provider parameters."""

    model: str = "gemini-2.5-flash-lite"
    base_url: str = "https://generativelanguage.googleapis.com/v1"
    timeout_seconds: float = 60.0


class FinnhubSection(BaseModel):
    """News provider parameters."""

    base_url: str = "https://finnhub.io/api/v1"
    lookback_days: int = 5
    timeout_seconds: float = 30.0


class MailSection(BaseModel):
    """SMTP delivery parameters."""

    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    username: str = ""
    password: str = ""
    sender: str = ""
    sender_name: str = "Signalist"
    use_starttls: bool = True
    timeout_seconds: float = 30.0


class SchedulerConfig(BaseModel):
    """Trigger schedule for the daily summary."""

    daily_summary_cron: str = "0 12 * * *"


class Settings(BaseSettings):
    """Main configuration class."""

    # Paths
    data_dir: Path = Path("data")

    # API Keys
    gemini_api_key: str = ""
    finnhub_api_key: str = ""
    logfire_token: str = ""

    # Nested configuration sections
    workflow: WorkflowConfig = Field(default_factory=WorkflowConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    gemini: GeminiSection = Field(default_factory=GeminiSection)
    finnhub: FinnhubSection = Field(default_factory=FinnhubSection)
    mail: MailSection = Field(default_factory=MailSection)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("data_dir", mode="after")
    @classmethod
    def resolve_data_dir(cls, v: Path) -> Path:
        """Resolve data directory to absolute path."""
        return v.resolve()

    def require_gemini_api_key(self) -> str:
        """Return the provider key, failing fast when it is not configured."""
        key = self.gemini_api_key.strip()
        if not key:
            raise MissingCredentialError("GEMINI_API_KEY")
        return key

    def load_yaml_config(self) -> None:
        """Load and merge YAML configuration."""
        config_path = self.data_dir / "config.yaml"

        if not config_path.exists():
            logger.warning(
                f"Config file not found: {config_path}. "
                "Using defaults. Run 'python -m signalist init' to create it."
            )
            return

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)

            if not yaml_config:
                logger.warning(f"Empty config file: {config_path}")
                return

            for section_name in [
                "workflow",
                "retry",
                "gemini",
                "finnhub",
                "mail",
                "scheduler",
            ]:
                if section_name in yaml_config:
                    section = getattr(self, section_name)
                    yaml_section = yaml_config[section_name]

                    section_dict = section.model_dump()
                    section_dict.update(yaml_section)

                    new_section = section.__class__(**section_dict)
                    setattr(self, section_name, new_section)

            logger.info(f"Loaded configuration from {config_path}")

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML config: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to load config: {e}")
            raise


@lru_cache()
def get_settings() -> Settings:
    """Get singleton Settings instance."""
    settings = Settings()
    settings.load_yaml_config()
    return settings
