"""
Configuration validation for the claims adjudication engine.

Provides additional validation beyond Pydantic model validation.
"""

import os
from pathlib import Path

import structlog

from claims_adjudication.config.models import AdjudicationConfig
from claims_adjudication.domain.enums import NetworkTier

logger = structlog.get_logger()


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""

    pass


def validate_config(config: AdjudicationConfig, require_data: bool = False) -> list[str]:
    """
    Validate adjudication configuration.

    Performs cross-field checks that Pydantic models do not cover.

    Args:
        config: AdjudicationConfig to validate
        require_data: If True, a missing dataset directory is an error

    Returns:
        List of warning messages (non-fatal issues)

    Raises:
        ConfigurationError: If configuration has fatal issues
    """
    warnings: list[str] = []
    errors: list[str] = []

    # Check dataset path
    data_path = Path(config.data_path)
    if not data_path.exists():
        message = f"Data path does not exist: {data_path}"
        if require_data:
            errors.append(message)
        else:
            warnings.append(message)
    elif not data_path.is_dir():
        errors.append(f"Data path is not a directory: {data_path}")

    # Network tiers must be known
    known_tiers = {t.value for t in NetworkTier}
    unknown = sorted(set(config.network.tier_discounts) - known_tiers)
    if unknown:
        errors.append(
            f"Unknown network tiers in tier_discounts: {', '.join(unknown)}. "
            f"Expected one of: {', '.join(sorted(known_tiers))}"
        )

    # Check worker count vs CPU
    cpu_count = os.cpu_count() or 1
    if config.batch.max_workers > cpu_count * 4:
        warnings.append(
            f"max_workers ({config.batch.max_workers}) is more than four times the "
            f"CPU count ({cpu_count}). Throughput is unlikely to improve."
        )

    if config.batch.batch_size < config.batch.max_workers:
        warnings.append(
            f"batch_size ({config.batch.batch_size}) is smaller than max_workers "
            f"({config.batch.max_workers}); some workers will sit idle."
        )

    # Review thresholds should line up with the manual review threshold
    if config.review.high_priority_threshold > config.engine.high_value_threshold:
        warnings.append(
            f"review.high_priority_threshold ({config.review.high_priority_threshold}) is "
            f"above engine.high_value_threshold ({config.engine.high_value_threshold}); "
            "some high-value reviews will be queued at medium priority."
        )

    # Log warnings
    for warning in warnings:
        logger.warning("config_validation_warning", message=warning)

    # Raise if any errors
    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)

    return warnings
