"""Configuration loading and management."""

from skilo.config.loader import (
    apply_env_overrides,
    find_config_file,
    load_config,
    merge_configs,
)
from skilo.config.schema import CacheSettings, SkiloConfig

__all__ = [
    # Loader functions
    "apply_env_overrides",
    "find_config_file",
    "load_config",
    "merge_configs",
    # Schema classes
    "CacheSettings",
    "SkiloConfig",
]
