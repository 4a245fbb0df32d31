"""
Pydantic configuration models for the claims adjudication engine.

These models define the structure and validation for engine configuration.
"""

from decimal import Decimal
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


class EngineConfig(BaseModel):
    """Core adjudication parameters."""

    high_value_threshold: Decimal = Field(
        default=Decimal("10000"),
        ge=0,
        description="Claims above this amount always require manual review",
    )
    benefit_year_start_month: int = Field(
        default=1,
        ge=1,
        le=12,
        description="Month annual limits reset in (1 = calendar year)",
    )
    enforce_premium_status: bool = Field(
        default=True,
        description="Deny claims for members whose premiums are not current",
    )
    rounding_places: int = Field(
        default=2,
        ge=0,
        le=6,
        description="Decimal places money amounts are rounded to",
    )
    executed_by: str = Field(
        default="system",
        max_length=50,
        description="Actor recorded on rule execution logs",
    )


class NetworkConfig(BaseModel):
    """Provider network discount parameters."""

    tier_discounts: dict[str, Decimal] = Field(
        default={
            "premium": Decimal("15"),
            "tier_1": Decimal("10"),
            "tier_2": Decimal("5"),
            "tier_3": Decimal("0"),
            "standard": Decimal("5"),
            "basic": Decimal("0"),
        },
        description="Discount percentage negotiated per provider network tier",
    )

    @field_validator("tier_discounts")
    @classmethod
    def discounts_are_percentages(cls, v: dict[str, Decimal]) -> dict[str, Decimal]:
        """Ensure every discount lies in [0, 100]."""
        for tier, pct in v.items():
            if not Decimal("0") <= pct <= Decimal("100"):
                raise ValueError(f"Discount for {tier} must be between 0 and 100, got {pct}")
        return v


class BatchConfig(BaseModel):
    """Batch coordinator settings."""

    batch_size: int = Field(
        default=10,
        ge=1,
        le=1000,
        description="Number of claims submitted to the worker pool at once",
    )
    max_workers: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Maximum concurrent worker threads",
    )
    parallel: bool = Field(
        default=False,
        description="Process batches in parallel by default",
    )


class ReviewConfig(BaseModel):
    """Manual review queue prioritisation."""

    medium_priority_threshold: Decimal = Field(
        default=Decimal("5000"),
        ge=0,
        description="Claims above this amount get at least medium priority",
    )
    high_priority_threshold: Decimal = Field(
        default=Decimal("10000"),
        ge=0,
        description="Claims above this amount get high priority",
    )

    @field_validator("high_priority_threshold")
    @classmethod
    def high_above_medium(cls, v: Decimal, info) -> Decimal:
        """Ensure high_priority_threshold is not below medium_priority_threshold."""
        if "medium_priority_threshold" in info.data and v < info.data["medium_priority_threshold"]:
            raise ValueError("high_priority_threshold must be >= medium_priority_threshold")
        return v


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(default="INFO", description="Log level")
    json_output: bool = Field(default=False, description="Render logs as JSON")

    @field_validator("level")
    @classmethod
    def known_level(cls, v: str) -> str:
        """Ensure the level is a standard logging level."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class AdjudicationConfig(BaseSettings):
    """
    Root adjudication configuration.

    Values can be loaded from YAML files and overridden via environment
    variables, e.g. ``ADJUDICATION_ENGINE__HIGH_VALUE_THRESHOLD=25000``.
    """

    engine: EngineConfig = Field(default_factory=EngineConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    review: ReviewConfig = Field(default_factory=ReviewConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    data_path: Path = Field(
        default=Path("data"),
        description="Path to the JSON dataset used by the command-line tools",
    )

    model_config = {
        "env_prefix": "ADJUDICATION_",
        "env_nested_delimiter": "__",
    }
