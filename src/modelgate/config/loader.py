"""Configuration loader module.

This module provides functions for loading configuration from YAML and
transforming it into a validated RegistryConfig object.
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from modelgate._internal.exceptions import ConfigError, ConfigValueError

from .schema import RegistryConfig

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def default_config_path() -> Path:
    """Return the configuration path from ``MODELGATE_CONFIG`` or the home default."""
    override = os.environ.get("MODELGATE_CONFIG")
    if override:
        return Path(override)
    return Path.home() / ".modelgate" / "config.yaml"


def resolve_env_vars(value: Any) -> Any:
    """Replace ${VAR} patterns with environment variables.

    Args:
        value: Configuration value (mapping, list, or scalar)

    Returns:
        The value with every ``${VAR}`` substituted; unset variables become "".
    """
    if isinstance(value, dict):
        return {key: resolve_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [resolve_env_vars(item) for item in value]
    if isinstance(value, str) and "${" in value:
        return _ENV_PATTERN.sub(lambda match: os.environ.get(match.group(1), ""), value)
    return value


def load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        path: Path to YAML file

    Returns:
        Dictionary containing configuration from YAML; empty when missing

    Raises:
        ConfigError: If file cannot be read or parsed
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        return {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}", context={"path": str(path)}) from e
    except OSError as e:
        raise ConfigError(f"Error reading {path}", context={"path": str(path)}) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            "Configuration file must contain a mapping",
            context={"path": str(path), "value_type": type(data).__name__},
        )
    return data


def parse_config(data: Dict[str, Any]) -> RegistryConfig:
    """Validate raw configuration data.

    Raises:
        ConfigValueError: Naming the dotted path of the first offending value,
            e.g. ``provider.openai.models.gpt-5.limit.context``.
    """
    try:
        return RegistryConfig.model_validate(resolve_env_vars(data))
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ConfigValueError(
            f"Invalid configuration value at '{location}': {first['msg']}",
            context={"key": location, "errors": e.error_count()},
        ) from e


def load_config(path: Optional[Path] = None) -> RegistryConfig:
    """Load RegistryConfig from file.

    Args:
        path: Config file; defaults to :func:`default_config_path`

    Returns:
        Validated RegistryConfig instance (empty when the file does not exist)

    Raises:
        ConfigError: On loading or validation failure
    """
    config_path = Path(path) if path is not None else default_config_path()
    return parse_config(load_yaml_file(config_path))


__all__ = [
    "default_config_path",
    "load_config",
    "load_yaml_file",
    "parse_config",
    "resolve_env_vars",
]
