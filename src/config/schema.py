"""Run Configuration Schema

Pydantic models describing one reconciliation run: which set, which
languages, which card numbers, and how strict validation is.
Supports YAML/JSON config files.
"""

import json
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

import constants
from errors import ConfigurationError


def pad_number(value, width: int) -> str:
    """Zero-pad a numeric identifier ("42" -> "042"); leave other text alone."""
    text = str(value).strip()
    if text.isdigit():
        return text.zfill(width)
    return text


class CardRange(BaseModel):
    """Inclusive range of collector numbers."""

    start: int = Field(1, ge=1, description="First card number")
    end: int = Field(..., ge=1, description="Last card number (inclusive)")

    @model_validator(mode="after")
    def check_order(self):
        if self.end < self.start:
            raise ValueError(f"Card range end {self.end} is before start {self.start}")
        return self

    @classmethod
    def parse(cls, text: str) -> "CardRange":
        """Parse "1-242" or a single number "42"."""
        start, sep, end = text.partition("-")
        try:
            if not sep:
                return cls(start=int(start), end=int(start))
            return cls(start=int(start), end=int(end))
        except ValueError as exc:
            raise ConfigurationError(f"Invalid card range: {text!r}") from exc

    def numbers(self) -> List[str]:
        return [
            pad_number(n, constants.CARD_NUMBER_WIDTH)
            for n in range(self.start, self.end + 1)
        ]


class ReconcileConfig(BaseModel):
    """Inputs for one validate/reconcile run.

    ``dry_run`` defaults to True: validation and reporting only. Repairs have
    to be asked for explicitly.
    """

    set_id: str = Field(..., description="Set number, e.g. 009")
    languages: List[str] = Field(
        default_factory=lambda: [constants.DEFAULT_PRIMARY_LANGUAGE],
        description="Languages to process",
    )
    card_range: CardRange = Field(..., description="Expected card numbers")
    primary_language: str = Field(
        constants.DEFAULT_PRIMARY_LANGUAGE,
        description="Language whose originals feed the shared art-only variant",
    )
    include_variants: bool = Field(True, description="Check art-only/art-and-name")
    include_existing: bool = Field(
        False, description="Also check card numbers already on disk outside the range"
    )
    tolerance_px: int = Field(
        constants.DEFAULT_TOLERANCE_PX,
        ge=0,
        le=50,
        description="Accepted deviation from expected dimensions",
    )
    max_attempts: int = Field(
        constants.MAX_ATTEMPTS, ge=1, le=10, description="Reconciliation passes per card"
    )
    dry_run: bool = Field(True, description="Validate and report without repairing")
    max_workers: Optional[int] = Field(
        None, ge=1, le=32, description="Parallel cards per language (None = settings)"
    )

    @field_validator("set_id", mode="before")
    @classmethod
    def normalize_set(cls, v):
        text = pad_number(v, constants.SET_ID_WIDTH)
        if not text:
            raise ValueError("set_id must not be empty")
        return text

    @field_validator("languages", mode="before")
    @classmethod
    def normalize_languages(cls, v):
        if isinstance(v, str):
            v = v.split(",")
        languages = []
        for lang in v:
            code = str(lang).strip().upper()
            if code and code not in languages:
                languages.append(code)
        invalid = [code for code in languages if code not in constants.VALID_LANGUAGES]
        if invalid:
            raise ValueError(
                f"Invalid language(s): {', '.join(invalid)}. "
                f"Must be among {constants.VALID_LANGUAGES}"
            )
        if not languages:
            raise ValueError("At least one language is required")
        return languages

    @field_validator("primary_language", mode="before")
    @classmethod
    def normalize_primary(cls, v):
        code = str(v).strip().upper()
        if code not in constants.VALID_LANGUAGES:
            raise ValueError(f"Invalid primary language: {code}")
        return code

    @field_validator("card_range", mode="before")
    @classmethod
    def parse_range(cls, v):
        if isinstance(v, str):
            try:
                return CardRange.parse(v)
            except ConfigurationError as exc:
                raise ValueError(str(exc)) from exc
        return v

    def ordered_languages(self) -> List[str]:
        """Languages in processing order: the primary language always first."""
        if self.primary_language in self.languages:
            rest = [lang for lang in self.languages if lang != self.primary_language]
            return [self.primary_language] + rest
        return list(self.languages)


def load_config(config_path: Path, **overrides) -> ReconcileConfig:
    """Load a run configuration from a YAML or JSON file.

    Keyword overrides that are not None replace values from the file.
    """
    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        if config_path.suffix.lower() in [".yaml", ".yml"]:
            data = yaml.safe_load(f) or {}
        else:
            data = json.load(f)

    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return ReconcileConfig(**data)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid config {config_path}: {exc}") from exc


def save_config(config: ReconcileConfig, config_path: Path) -> None:
    """Save a run configuration as YAML."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(mode="json")

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, indent=2, sort_keys=False)
