"""
Configuration loader for dokosa.

Settings are resolved in three layers, later layers winning:
1. An optional YAML file whose keys mirror ``DokosaConfig``
2. Environment variables (see ``ENV_OVERRIDES``)
3. Command-line flags (applied by the CLI)
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from ..core.exceptions import ConfigError
from ..core.types import DokosaConfig


logger = logging.getLogger(__name__)


ENV_OVERRIDES = {
    "DOKOSA_INDEX_FILE": "index_file",
    "DOKOSA_EMBEDDING_PROVIDER": "embedding_provider",
    "DOKOSA_EMBEDDING_MODEL": "embedding_model",
    "DOKOSA_EMBEDDING_BASE_URL": "embedding_base_url",
    "OPENAI_API_KEY": "api_key",
}

_FIELD_TYPES = {
    "index_file": str,
    "embedding_provider": str,
    "embedding_model": str,
    "embedding_base_url": str,
    "api_key": str,
    "timeout_seconds": int,
    "chunk_window_size": int,
    "chunk_step_size": int,
    "search_count": int,
    "similarity_threshold": float,
}


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> DokosaConfig:
    """
    Build the effective configuration.

    Args:
        config_path: YAML file to read (optional)
        environ: Environment to read overrides from (defaults to ``os.environ``)

    Returns:
        DokosaConfig with file values and environment overrides applied

    Raises:
        ConfigError: If the file is missing or malformed, has unknown keys,
            or a value has the wrong type
    """
    values: Dict[str, Any] = {}
    if config_path:
        values.update(_load_yaml(Path(config_path)))

    environ = os.environ if environ is None else environ
    for env_name, field_name in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            values[field_name] = value

    return build_config(values)


def build_config(values: Mapping[str, Any]) -> DokosaConfig:
    """
    Validate raw settings and build a DokosaConfig.

    Raises:
        ConfigError: On unknown keys or values of the wrong type
    """
    unknown = sorted(set(values) - DokosaConfig.field_names())
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    checked = {name: _coerce(name, value) for name, value in values.items()}
    config = DokosaConfig(**checked)
    _validate(config)
    return config


def _load_yaml(config_path: Path) -> Dict[str, Any]:
    if not config_path.is_file():
        raise ConfigError(f"Config file not found: {config_path}")

    logger.info(f"Loading config from: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read config file {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")
    return data


def _coerce(name: str, value: Any) -> Any:
    if value is None:
        return None

    expected = _FIELD_TYPES[name]
    if isinstance(value, bool):
        raise ConfigError(f"Config value '{name}' must be {expected.__name__}, got bool")
    if isinstance(value, expected):
        return value
    # ints are fine where floats are expected
    if expected is float and isinstance(value, int):
        return float(value)
    # environment values arrive as strings
    if isinstance(value, str) and expected in (int, float):
        try:
            return expected(value)
        except ValueError as e:
            raise ConfigError(f"Config value '{name}' must be {expected.__name__}: {value!r}") from e

    raise ConfigError(
        f"Config value '{name}' must be {expected.__name__}, got {type(value).__name__}"
    )


def _validate(config: DokosaConfig) -> None:
    for name in ("timeout_seconds", "chunk_window_size", "chunk_step_size"):
        value = getattr(config, name)
        if value is None or value <= 0:
            raise ConfigError(f"Config value '{name}' must be positive")
    if config.search_count is None or config.search_count < 0:
        raise ConfigError("Config value 'search_count' must not be negative")
    if config.embedding_provider is None:
        raise ConfigError("Config value 'embedding_provider' must be set")
