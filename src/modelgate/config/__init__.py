"""Configuration loading and schema for the provider registry."""

from .loader import default_config_path, load_config, parse_config
from .schema import ModelOverride, ProviderConfig, RegistryConfig

__all__ = [
    "ModelOverride",
    "ProviderConfig",
    "RegistryConfig",
    "default_config_path",
    "load_config",
    "parse_config",
]
