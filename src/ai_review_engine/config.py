"""
Configuration for the AI review engine.

Settings live in an optional `.ai-review.yaml` at the repository root.
Every section and key is optional; unknown keys are rejected so that a
misspelled option fails loudly instead of being ignored.
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError


class ConfigSection(BaseModel):
    """Base for configuration sections; unknown keys are rejected."""

    class Config:
        """Pydantic model configuration."""

        extra = "forbid"


class DiffConfig(ConfigSection):
    """Configuration for diff intake."""

    include_patterns: list[str] = Field(
        default=["**/*.al", "**/*.xlf", "**/*.json"],
        description="Glob patterns for files to include in the review.",
    )
    exclude_patterns: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to exclude from the review.",
    )
    max_diff_bytes: int = Field(
        default=500_000,
        ge=0,
        description="Largest diff accepted, in bytes (0 = unlimited).",
    )
    max_diff_lines: int = Field(
        default=10_000,
        ge=0,
        description="Largest diff accepted, in lines (0 = unlimited).",
    )


class GuidelineConfig(ConfigSection):
    """Configuration for guideline scanning."""

    rules_path: Optional[Path] = Field(
        default=None,
        description="JSON or YAML file with custom guideline rules.",
    )
    disable: bool = Field(
        default=False,
        description="Skip guideline scanning entirely.",
    )
    use_defaults: bool = Field(
        default=True,
        description="Include the built-in AL guideline rules.",
    )


class ReviewConfig(ConfigSection):
    """Configuration for the posted review."""

    author_identity: str = Field(
        default="github-actions[bot]",
        description="Login the automation posts reviews as.",
    )
    max_comments: int = Field(
        default=10,
        ge=0,
        description="Hard cap on inline comments (0 = unlimited).",
    )
    approve_reviews: bool = Field(
        default=False,
        description="Let the review approve or request changes.",
    )
    allow_before_side: bool = Field(
        default=True,
        description="Allow comments on removed lines.",
    )


class RetryConfig(ConfigSection):
    """Configuration for retrying external calls."""

    max_retries: int = Field(default=3, ge=1)
    base_delay: float = Field(default=1.0, ge=0.0)
    max_delay: float = Field(default=30.0, ge=0.0)


class OutputConfig(ConfigSection):
    """Configuration for output formatting."""

    colorize: bool = Field(
        default=True,
        description="Use colors in terminal output.",
    )
    verbose: bool = Field(
        default=False,
        description="Enable verbose output.",
    )


class Config(BaseModel):
    """Root configuration model for the AI review engine."""

    diff: DiffConfig = Field(default_factory=DiffConfig)
    guidelines: GuidelineConfig = Field(default_factory=GuidelineConfig)
    review: ReviewConfig = Field(default_factory=ReviewConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    class Config:
        """Pydantic model configuration."""

        extra = "forbid"


CONFIG_NAMES = (".ai-review.yaml", ".ai-review.yml")


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Read and validate a YAML configuration file.

    Args:
        config_path: File to read; None yields the defaults.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        ValueError: If the file is not valid YAML or fails validation.
    """
    if config_path is None:
        return Config()
    if not config_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"{config_path} is not valid YAML: {e}") from e

    if data is None:
        return Config()
    if not isinstance(data, dict):
        raise ValueError(f"{config_path} must contain a mapping of sections")
    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {config_path}: {e}") from e


def find_config_file(start_path: Path) -> Optional[Path]:
    """The nearest `.ai-review.yaml` (or `.yml`) in ``start_path`` or its parents."""
    start = start_path.resolve()
    for directory in (start, *start.parents):
        for name in CONFIG_NAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None
