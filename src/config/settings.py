"""
Process-level settings for the card image pipeline.

Uses Pydantic for type-safe, validated configuration with environment variable support.
Run-specific inputs (set, languages, card range) live in ``config.schema``.
"""

from pathlib import Path
from typing import List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

import constants


class PipelineSettings(BaseSettings):
    """Main settings for the card image pipeline.

    Settings can be overridden via:
    1. Environment variables (prefixed with CIP_)
    2. .env file in project root
    3. Programmatic overrides

    Example:
        export CIP_HTTP_TIMEOUT=10
        export CIP_LOG_LEVEL=DEBUG
    """

    # === Paths ===
    project_root: Path = Field(
        default_factory=lambda: Path(__file__).parent.parent.parent,
        description="Project root directory",
    )
    cards_root: Path = Field(
        default=Path("public/assets/images/cards"),
        description="Root of the card image tree",
    )
    catalogs_dir: Path = Field(
        default=Path("scripts/data/catalogs"),
        description="Ravensburger catalog JSON files, one per language",
    )
    lorcast_dir: Path = Field(
        default=Path("scripts/sources/lorcast"),
        description="Lorcast card dumps, one JSON file per set",
    )
    reports_dir: Path = Field(
        default=Path("reports"), description="Where JSON run reports are written"
    )
    logs_dir: Path = Field(default=Path("logs"), description="Log files directory")

    # === Providers ===
    providers: List[str] = Field(
        default_factory=lambda: ["ravensburger", "lorcast", "dreamborn"],
        description="Image providers in priority order",
    )
    dreamborn_url_template: str = Field(
        default="https://cdn.dreamborn.ink/images/{language_lower}/cards/{set}-{number}",
        description="URL template for the Dreamborn CDN",
    )

    # === HTTP ===
    http_timeout: int = Field(
        default=30, ge=1, le=300, description="HTTP request timeout in seconds"
    )
    max_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum HTTP retry attempts for 429/5xx/transport errors",
    )
    retry_base_delay: float = Field(
        default=0.5,
        ge=0.0,
        le=10.0,
        description="Base delay for exponential backoff (seconds)",
    )
    user_agent: str = Field(
        default="CardImagePipeline/1.0", description="User-Agent for provider requests"
    )

    # === Encoding ===
    webp_quality: int = Field(default=constants.WEBP_QUALITY, ge=1, le=100)
    webp_method: int = Field(default=constants.WEBP_METHOD, ge=0, le=6)
    avif_quality: int = Field(default=constants.AVIF_QUALITY, ge=1, le=100)
    avif_speed: int = Field(default=constants.AVIF_SPEED, ge=0, le=10)

    # === Concurrency ===
    max_workers: int = Field(
        default=1,
        ge=1,
        le=32,
        description="Cards reconciled in parallel within one language",
    )

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_rotation: str = Field(default="10 MB", description="Log file rotation size")
    log_retention: str = Field(
        default="10 days", description="Log file retention period"
    )
    log_to_file: bool = Field(default=True, description="Enable file logging")

    @field_validator(
        "cards_root",
        "catalogs_dir",
        "lorcast_dir",
        "reports_dir",
        "logs_dir",
        mode="before",
    )
    @classmethod
    def resolve_path(cls, v, info):
        """Resolve paths relative to project root."""
        if isinstance(v, str):
            v = Path(v)
        if not v.is_absolute() and info.data.get("project_root"):
            v = info.data["project_root"] / v
        return v

    @field_validator("providers")
    @classmethod
    def normalize_providers(cls, v):
        return [name.strip().lower() for name in v if name.strip()]

    model_config = {
        "env_prefix": "CIP_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "validate_default": True,
    }


# Global settings instance
settings = PipelineSettings()


def reload_settings() -> PipelineSettings:
    """Reload settings from environment and .env file.

    Useful for testing or runtime configuration changes.
    """
    global settings
    settings = PipelineSettings()
    return settings
