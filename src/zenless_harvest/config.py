# ABOUTME: Run configuration using Pydantic Settings for environment variables
# ABOUTME: Built once per run by load_config() and passed explicitly to every pipeline stage

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from zenless_harvest.errors import SetupError

DEFAULT_ALLOWED_HOSTS = (
    "act-upload.hoyoverse.com",
    "act-webstatic.hoyoverse.com",
    "upload-os-bbs.hoyolab.com",
    "webstatic-sea.hoyolab.com",
    "webstatic.hoyoverse.com",
)


class HarvestConfig(BaseSettings):
    """Run configuration with environment variable support.

    Instances are frozen: the orchestrator, pipelines and clients all share the
    same value for the whole run.
    """

    model_config = SettingsConfigDict(
        env_prefix="ZENLESS_HARVEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown environment variables
        frozen=True,
    )

    # Remote API
    api_base_url: str = Field(
        default="https://sg-wiki-api-static.hoyolab.com/hoyowiki/zzz/wapi/entry_page",
        description="Wiki entry page endpoint",
    )
    request_timeout_s: float = Field(default=10.0, gt=0, description="Per-request timeout in seconds")

    # Batch processing
    concurrency_limit: int = Field(default=5, ge=1, description="Item pipelines per concurrency window")
    retry_attempts: int = Field(default=3, ge=0, description="Retries after the first attempt")
    base_retry_delay_ms: int = Field(default=1000, ge=0, description="Backoff delay before the first retry")
    retry_delay_cap_ms: int = Field(default=30000, ge=0, description="Upper bound for a single backoff delay")
    inter_batch_delay_ms: int = Field(default=500, ge=0, description="Pause between concurrency windows")
    stagger_ms: int = Field(default=100, ge=0, description="Start delay per index inside a window")
    retry_extraction_errors: bool = Field(
        default=True, description="Retry items whose payload is missing required structure"
    )
    min_success_rate: float = Field(
        default=0.8, ge=0.0, le=1.0, description="Minimum success ratio the CLI accepts for a run"
    )

    # Extraction
    max_description_length: int = Field(
        default=10000, ge=1, description="Free-text descriptions are truncated to this many characters"
    )

    # Asset downloads
    asset_root: Path = Field(default=Path("assets/images/bangboo"), description="Directory icons are written to")
    weapon_asset_root: Path = Field(
        default=Path("assets/images/weapons"), description="Directory weapon icons are written to"
    )
    max_asset_size_bytes: int = Field(default=10 * 1024 * 1024, ge=1, description="Largest accepted icon")
    skip_existing: bool = Field(default=True, description="Keep non-empty icons that already exist")
    validate_downloads: bool = Field(default=True, description="Enforce size limits on downloaded icons")
    allowed_hosts: tuple[str, ...] = Field(default=DEFAULT_ALLOWED_HOSTS, description="Icon host allow-list")

    # Output
    output_path: Path = Field(default=Path("data/characters.json"), description="Validated record output")
    weapon_output_path: Path = Field(default=Path("data/weapons.json"), description="Validated weapon output")
    bangboo_output_path: Path = Field(default=Path("data/bangboo.json"), description="Validated bangboo output")
    failures_path: Path | None = Field(default=None, description="Optional failure list output")

    # Logging Configuration
    log_mode: Literal["interactive", "production"] = Field(default="interactive", description="Logging output mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging verbosity level"
    )
    log_file: Path | None = Field(default=None, description="Custom log file path (overrides default)")

    @model_validator(mode="after")
    def _check_delays(self) -> "HarvestConfig":
        if self.retry_delay_cap_ms < self.base_retry_delay_ms:
            raise ValueError("retry_delay_cap_ms must be greater than or equal to base_retry_delay_ms")
        return self


def load_config(**overrides: Any) -> HarvestConfig:
    """Build the configuration for a run.

    Environment variables and ``.env`` are read on every call; explicit
    overrides (typically CLI options) win over both.

    Raises:
        SetupError: If any value violates its constraints
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return HarvestConfig(**values)
    except ValidationError as e:
        raise SetupError(f"Invalid configuration: {e}") from e
