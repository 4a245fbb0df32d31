"""
Configuration module for the claims adjudication engine.

This module provides:
- Pydantic configuration models
- YAML configuration loading
- Configuration validation
"""

from claims_adjudication.config.models import (
    AdjudicationConfig,
    EngineConfig,
    NetworkConfig,
    BatchConfig,
    ReviewConfig,
    LoggingConfig,
)
from claims_adjudication.config.loader import load_config
from claims_adjudication.config.validation import ConfigurationError, validate_config

__all__ = [
    "AdjudicationConfig",
    "EngineConfig",
    "NetworkConfig",
    "BatchConfig",
    "ReviewConfig",
    "LoggingConfig",
    "ConfigurationError",
    "load_config",
    "validate_config",
]
