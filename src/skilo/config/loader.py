"""Configuration loader with merge logic and precedence handling."""

import os
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from skilo.cache.paths import CACHE_ENV, HOME_ENV, OFFLINE_ENV, parse_offline_flag
from skilo.config.defaults import DEFAULT_CONFIG
from skilo.config.schema import SkiloConfig

CONFIG_CANDIDATES = (".skilorc.yaml", "skilo.yaml", ".skilo/config.yaml")


def find_config_file(base_dir: Optional[Path] = None) -> Optional[Path]:
    """Find the project configuration file.

    Candidates are checked in order and the first existing one wins:
    ``.skilorc.yaml``, ``skilo.yaml``, ``.skilo/config.yaml``.

    Args:
        base_dir: Directory to search (defaults to the working directory)

    Returns:
        Path to the config file, or None if there is none
    """
    base = base_dir or Path.cwd()
    for name in CONFIG_CANDIDATES:
        candidate = base / name
        if candidate.is_file():
            return candidate
    return None


def load_yaml_file(file_path: Path) -> dict[str, Any]:
    """Load and parse a YAML configuration file.

    Args:
        file_path: Path to the YAML file

    Returns:
        Dictionary containing the parsed YAML content

    Raises:
        yaml.YAMLError: If the file contains invalid YAML
        FileNotFoundError: If the file doesn't exist
    """
    with open(file_path, "r") as f:
        content = yaml.safe_load(f)
        return content if content is not None else {}


def merge_configs(configs: list[dict[str, Any]]) -> dict[str, Any]:
    """Deep merge configuration dictionaries, later ones winning.

    Nested dictionaries are merged recursively; any other value (lists
    included) replaces the earlier one outright.
    """
    result: dict[str, Any] = {}
    for config in configs:
        result = _deep_merge(result, config)
    return result


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def apply_env_overrides(
    config: dict[str, Any], environ: Optional[Mapping[str, str]] = None
) -> dict[str, Any]:
    """Apply environment variable overrides to configuration.

    Supports the following environment variables:
    - SKILO_HOME: Override cache.home
    - SKILO_CACHE: Override cache.cache_dir
    - SKILO_OFFLINE: Override cache.offline ("1" or "true")

    Empty values are ignored.

    Args:
        config: Configuration dictionary to apply overrides to
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        Configuration dictionary with environment overrides applied
    """
    env = os.environ if environ is None else environ
    result = config.copy()
    cache = dict(result.get("cache") or {})

    if home := env.get(HOME_ENV):
        cache["home"] = home

    if cache_dir := env.get(CACHE_ENV):
        cache["cache_dir"] = cache_dir

    if offline := env.get(OFFLINE_ENV):
        cache["offline"] = parse_offline_flag(offline)

    result["cache"] = cache
    return result


def load_config(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> SkiloConfig:
    """Load and merge configuration from all sources.

    Configuration precedence (lowest to highest):
    1. Built-in defaults
    2. Project config (first of CONFIG_CANDIDATES in the working directory)
    3. Explicitly provided config_path (if given)
    4. Environment variables

    Args:
        config_path: Optional explicit path to a config file
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        Validated SkiloConfig instance

    Raises:
        ValidationError: If the merged configuration is invalid
        yaml.YAMLError: If a config file contains invalid YAML
        FileNotFoundError: If config_path is provided but doesn't exist
    """
    configs_to_merge = [DEFAULT_CONFIG]

    project_config = find_config_file()
    if project_config is not None:
        try:
            configs_to_merge.append(load_yaml_file(project_config))
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Error loading {project_config}: {e}") from e

    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        configs_to_merge.append(load_yaml_file(config_path))

    merged_config = merge_configs(configs_to_merge)
    merged_config = apply_env_overrides(merged_config, environ)

    return SkiloConfig(**merged_config)
