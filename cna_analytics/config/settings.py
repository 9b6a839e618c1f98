"""CNA Analytics application settings loaded from environment variables."""

from enum import StrEnum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cna_analytics.models.common import DataClassification


class Environment(StrEnum):
    """Deployment environment."""

    DEV = "dev"
    STAGING = "staging"
    PROD = "prod"


class LogLevel(StrEnum):
    """Supported log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Application-wide settings loaded from environment variables / .env file.

    API keys and deployment-specific values live here. Never hardcode them.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- AI / LLM API Keys ---
    ANTHROPIC_API_KEY: str = Field(
        default="",
        description="Anthropic API key for Claude models.",
    )
    OPENAI_API_KEY: str = Field(
        default="",
        description="OpenAI API key.",
    )

    # --- Narrative generation ---
    NARRATIVE_MODEL_ANTHROPIC: str = Field(
        default="claude-sonnet-4-5",
        description="Anthropic model used for workforce narratives.",
    )
    NARRATIVE_MODEL_OPENAI: str = Field(
        default="gpt-4o-mini",
        description="OpenAI model used for workforce narratives.",
    )
    NARRATIVE_TIMEOUT_SECONDS: float = Field(
        default=60.0,
        gt=0,
        description="Upper bound on one narrative generation, retries included.",
    )
    DATA_CLASSIFICATION: DataClassification = Field(
        default=DataClassification.CONFIDENTIAL,
        description="Classification of survey data; RESTRICTED disables external providers.",
    )

    # --- Reporting ---
    AGENCY_NAME: str = Field(
        default="Agency",
        description="Agency name printed on exported reports.",
    )

    # --- Logging ---
    LOG_LEVEL: LogLevel = Field(
        default=LogLevel.INFO,
        description="Application log level.",
    )

    # --- Environment ---
    ENVIRONMENT: Environment = Field(
        default=Environment.DEV,
        description="Deployment environment (dev/staging/prod).",
    )


def get_settings() -> Settings:
    """Factory function for dependency injection via FastAPI Depends."""
    return Settings()
