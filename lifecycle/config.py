"""Reconciler configuration using pydantic-settings.

This module defines the ReconcileSettings class that reads configuration
from environment variables with the RECONCILE_ prefix. The settings object
is built once at process start and handed to the workflow; nothing in the
reconciliation logic reads the environment directly.
"""

from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReconcileSettings(BaseSettings):
    """Reconciler configuration from environment variables.

    All environment variables are prefixed with RECONCILE_ (e.g.,
    RECONCILE_GITHUB_TOKEN).

    Required fields (must be set via environment variables):
    - github_token: GitHub API token used to read runs and delete branches
    - repo_owner: Owner (user or organization) of the provisioning repos
    - operation_bucket: Bucket holding the pending operation records
    """

    model_config = SettingsConfigDict(
        env_prefix="RECONCILE_",
        case_sensitive=False,
    )

    # -------------------------------------------------------------------------
    # GitHub Configuration
    # -------------------------------------------------------------------------
    github_token: str

    # Base URL for GitHub API (supports GitHub Enterprise)
    github_base_url: str = "https://api.github.com"

    github_timeout_seconds: float = 30.0

    # Page size for the workflow run listing (GitHub caps this at 100)
    runs_per_page: int = 100

    repo_owner: str

    # -------------------------------------------------------------------------
    # Operation Store Configuration
    # -------------------------------------------------------------------------
    operation_bucket: str

    # Endpoint override for S3-compatible stores (MinIO, LocalStack)
    storage_endpoint_url: Optional[str] = None

    aws_region: Optional[str] = None

    # -------------------------------------------------------------------------
    # Event Configuration
    # -------------------------------------------------------------------------
    event_bus_name: str = "default"
    event_source: str = "saas.lifecycle"

    # "eventbridge" publishes for real; "logging" only logs the events
    event_sink: str = "eventbridge"

    # -------------------------------------------------------------------------
    # Observability
    # -------------------------------------------------------------------------
    log_level: str = "INFO"
    log_json: bool = True
    metrics_gateway_url: Optional[str] = None

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("github_token", "repo_owner", "operation_bucket")
    @classmethod
    def validate_not_empty(cls, v: str, info) -> str:
        """Validate that required string settings are not blank."""
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty")
        return v.strip()

    @field_validator("github_base_url")
    @classmethod
    def validate_github_base_url(cls, v: str) -> str:
        """Validate that the GitHub base URL is an http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("github_base_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("runs_per_page")
    @classmethod
    def validate_runs_per_page(cls, v: int) -> int:
        """Validate that the page size is within GitHub's bounds."""
        if not 1 <= v <= 100:
            raise ValueError("runs_per_page must be between 1 and 100")
        return v

    @field_validator("github_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("github_timeout_seconds must be positive")
        return v

    @field_validator("event_sink")
    @classmethod
    def validate_event_sink(cls, v: str) -> str:
        """Validate that the event sink is one we know how to build."""
        sink = v.strip().lower()
        if sink not in ("eventbridge", "logging"):
            raise ValueError("event_sink must be 'eventbridge' or 'logging'")
        return sink

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unsupported log level: {v}")
        return level


def get_settings() -> ReconcileSettings:
    """Create and return a ReconcileSettings instance.

    Returns:
        ReconcileSettings: Configured settings instance.

    Raises:
        pydantic.ValidationError: If required fields are missing or invalid.
    """
    return ReconcileSettings()
