"""
Pipeline Configuration
======================

Explicit configuration passed into the orchestrator at construction time.
"""

import os

from pydantic import BaseModel, Field


class PipelineConfig(BaseModel):
    """Tunable knobs for translation, confirmation, execution and sessions."""

    confirmation_threshold: float = Field(
        default=0.99,
        ge=0.0,
        le=1.0,
        description="Translations below this confidence require confirmation",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Maximum number of automatic SQL corrections",
    )
    session_max_age_seconds: float = Field(default=30 * 60, gt=0)
    sweep_interval_seconds: float = Field(default=5 * 60, gt=0)
    include_sql: bool = Field(
        default=False,
        description="Disclose generated SQL in prompts and responses",
    )
    suggest_alternatives: bool = True
    default_row_limit: int = Field(default=100, ge=1)
    max_display_rows: int = Field(default=100, ge=1)
    download_row_limit: int = Field(default=5000, ge=1)
    filter_temperature: float = Field(default=0.2, ge=0.0, le=1.0)
    aggregation_temperature: float = Field(default=0.2, ge=0.0, le=1.0)
    correction_temperature: float = Field(default=0.1, ge=0.0, le=1.0)

    @classmethod
    def from_env(cls, prefix: str = "NLQ_") -> "PipelineConfig":
        """
        Build a configuration from environment variables.

        Each field can be overridden by ``<prefix><FIELD_NAME>`` in upper case,
        e.g. ``NLQ_MAX_RETRIES=3``. Unset variables keep their defaults.

        Args:
            prefix: Environment variable prefix

        Returns:
            Validated PipelineConfig
        """
        overrides = {}
        for name in cls.model_fields:
            value = os.getenv(f"{prefix}{name.upper()}")
            if value is not None:
                overrides[name] = value
        return cls.model_validate(overrides)
