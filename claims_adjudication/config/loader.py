"""
YAML configuration loader for the claims adjudication engine.

A configuration file may reference environment variables as ``${NAME}`` or
``${NAME:-default}``. Command-line values are merged over the file before the
settings model validates the result.
"""

import os
import re
from pathlib import Path
from typing import Any

import structlog
import yaml

from claims_adjudication.config.models import AdjudicationConfig

logger = structlog.get_logger()

DEFAULT_CONFIG_PATHS = [
    Path("config/adjudication.yaml"),
    Path("adjudication.yaml"),
    Path.home() / ".claims_adjudication" / "adjudication.yaml",
]

ENV_REFERENCE = re.compile(r"\$\{(?P<name>[^}:]+)(?::-(?P<default>[^}]*))?\}")


def expand_env_vars(node: Any) -> Any:
    """Replace ``${NAME}`` references in every string of a parsed YAML tree."""
    if isinstance(node, str):
        return ENV_REFERENCE.sub(
            lambda m: os.environ.get(m.group("name"), m.group("default") or ""), node
        )
    if isinstance(node, dict):
        return {key: expand_env_vars(value) for key, value in node.items()}
    if isinstance(node, list):
        return [expand_env_vars(item) for item in node]
    return node


def merge_overrides(settings: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """
    Layer ``overrides`` over ``settings`` without mutating either.

    Nested sections merge key by key; any other value replaces the original.
    """
    merged = dict(settings)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_overrides(current, value)
        else:
            merged[key] = value
    return merged


def find_config_file() -> Path | None:
    """First existing file among the default locations."""
    return next((path for path in DEFAULT_CONFIG_PATHS if path.exists()), None)


def load_yaml(path: Path) -> dict[str, Any]:
    """
    Read a configuration file.

    Raises:
        FileNotFoundError: If the file does not exist
        yaml.YAMLError: If the file is not valid YAML
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path) as f:
        document = yaml.safe_load(f)

    return expand_env_vars(document or {})


def load_config(
    config_path: str | Path | None = None,
    override_values: dict[str, Any] | None = None,
) -> AdjudicationConfig:
    """
    Load adjudication configuration.

    Args:
        config_path: Configuration file. When None the default locations are
            searched, and built-in defaults apply if none exists.
        override_values: Values merged over the file (e.g. from CLI options)

    Returns:
        Validated AdjudicationConfig

    Raises:
        FileNotFoundError: If an explicit configuration file is missing
        ValidationError: If the merged configuration is invalid
    """
    path = Path(config_path) if config_path is not None else find_config_file()
    if path is None:
        logger.debug("config_defaults_used", searched=[str(p) for p in DEFAULT_CONFIG_PATHS])
        settings: dict[str, Any] = {}
    else:
        settings = load_yaml(path)

    if override_values:
        settings = merge_overrides(settings, override_values)
        logger.debug("config_overrides_applied", keys=sorted(override_values))

    return AdjudicationConfig(**settings)
