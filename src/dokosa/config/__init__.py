"""
Configuration loading for dokosa.
"""

from .config_loader import ENV_OVERRIDES, build_config, load_config

__all__ = [
    "ENV_OVERRIDES",
    "build_config",
    "load_config",
]
