"""Application configuration using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file without clobbering variables already exported in the shell
load_dotenv(override=False)

# Directory (relative to a project) holding history, logs and other state
STATE_DIR_NAME = ".agent-cloud"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    debug: bool = False
    app_name: str = "agent-cloud-app"
    static_build_dir: str = "dist"

    # Claude Agent SDK
    anthropic_api_key: str = Field(default="")
    agent_model: str = "sonnet"
    agent_max_retries: int = 2

    # AWS
    aws_region: str = "us-east-1"
    aws_profile: str | None = None

    # GCP
    gcloud_project: str | None = Field(
        default=None,
        validation_alias=AliasChoices("gcloud_project", "google_cloud_project"),
    )
    gcloud_region: str = "us-central1"

    # Azure
    azure_subscription_id: str | None = None
    azure_resource_group: str = "agent-cloud-rg"
    azure_location: str = "eastus"

    # Vendor CLI execution (seconds)
    command_timeout: float = 30.0
    deploy_command_timeout: float = 900.0

    # Suspended workflow runs, shared across projects so they can be resumed by id
    runs_dir: Path = Field(default_factory=lambda: Path.home() / STATE_DIR_NAME / "runs")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["console", "json"] = "console"
    log_to_file: bool = True

    # Tracing
    langsmith_tracing: bool = False

    @property
    def has_agent_credentials(self) -> bool:
        """Check if an Anthropic API key is configured."""
        return bool(self.anthropic_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
