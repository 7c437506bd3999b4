"""Configuration module for the cache service."""

from .cache_config import (
    CacheSettings,
    load_settings,
    read_config_file,
    env_overrides,
    ENV_OVERRIDES,
)

__all__ = [
    "CacheSettings",
    "load_settings",
    "read_config_file",
    "env_overrides",
    "ENV_OVERRIDES",
]
