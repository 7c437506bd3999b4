"""Settings for the threat intel cache."""

from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from common import ConfigurationError, get_env
from common.constants import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_DATA_URL,
    DEFAULT_DB_PATH,
    DEFAULT_HTTP_BACKOFF,
    DEFAULT_HTTP_RETRIES,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PUSHGATEWAY_URL,
    MAX_HTTP_RETRIES,
    MAX_HTTP_TIMEOUT,
    MIN_HTTP_TIMEOUT,
    STALENESS_WINDOW_MS,
)

logger = structlog.get_logger()

# Environment variable -> settings field
ENV_OVERRIDES = {
    "INTEL_DATA_URL": "data_url",
    "INTEL_DB_PATH": "db_path",
    "HTTP_TIMEOUT": "http_timeout",
    "HTTP_RETRIES": "http_retries",
    "HTTP_BACKOFF": "http_backoff",
    "INTEL_STALENESS_MS": "staleness_window_ms",
    "LOG_LEVEL": "log_level",
    "METRICS_ENABLED": "metrics_enabled",
    "INTEL_STRICT_VALIDATION": "strict_validation",
    "PROMETHEUS_PUSHGATEWAY_URL": "pushgateway_url",
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class CacheSettings(BaseModel):
    """Runtime settings for the cache service."""

    data_url: str = Field(DEFAULT_DATA_URL, description="Remote blocklist document")
    db_path: str = Field(DEFAULT_DB_PATH, description="SQLite file or :memory:")
    http_timeout: int = Field(DEFAULT_HTTP_TIMEOUT, ge=MIN_HTTP_TIMEOUT, le=MAX_HTTP_TIMEOUT)
    http_retries: int = Field(DEFAULT_HTTP_RETRIES, ge=1, le=MAX_HTTP_RETRIES)
    http_backoff: float = Field(DEFAULT_HTTP_BACKOFF, ge=0)
    staleness_window_ms: int = Field(STALENESS_WINDOW_MS, gt=0)
    log_level: str = Field(DEFAULT_LOG_LEVEL)
    metrics_enabled: bool = Field(False)
    strict_validation: bool = Field(False, description="Abort an update on the first invalid entry")
    pushgateway_url: str = Field(DEFAULT_PUSHGATEWAY_URL)

    @field_validator("data_url")
    @classmethod
    def _check_data_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("data_url must be an http(s) URL")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {list(LOG_LEVELS)}")
        return level


def read_config_file(config_path: str) -> Dict[str, Any]:
    """
    Read the ``cache`` section of a YAML configuration file.

    Raises:
        ConfigurationError: If the file is not valid YAML or has the wrong shape
    """
    config_file = Path(config_path)

    try:
        with open(config_file, "r") as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            "Configuration file is not valid YAML",
            context={"config_path": config_path},
            original_error=e,
        )

    section = config.get("cache", {}) if isinstance(config, dict) else None
    if not isinstance(section, dict):
        raise ConfigurationError(
            "Configuration file must contain a 'cache' mapping",
            context={"config_path": config_path},
        )
    return section


def env_overrides() -> Dict[str, str]:
    """Settings values provided through the environment."""
    overrides = {}
    for env_key, field_name in ENV_OVERRIDES.items():
        value = get_env(env_key)
        if value:
            overrides[field_name] = value
    return overrides


def load_settings(config_path: Optional[str] = None) -> CacheSettings:
    """
    Build settings from defaults, an optional YAML file and the environment.

    Later sources win: defaults < file < environment. Without an explicit
    path, ``config/cache.yaml`` is read when it exists.

    Args:
        config_path: YAML file to read

    Returns:
        Validated CacheSettings

    Raises:
        ConfigurationError: If the file is missing (explicit path) or a value is invalid
    """
    values: Dict[str, Any] = {}

    path = config_path or get_env("INTEL_CONFIG_PATH", DEFAULT_CONFIG_PATH)
    if Path(path).exists():
        values.update(read_config_file(path))
        logger.info("Configuration loaded", config_path=path)
    elif config_path:
        raise ConfigurationError(
            f"Configuration file not found: {config_path}",
            context={"config_path": config_path},
        )

    values.update(env_overrides())

    try:
        return CacheSettings(**values)
    except ValidationError as e:
        fields = [str(err["loc"][0]) for err in e.errors() if err["loc"]]
        raise ConfigurationError(
            "Invalid configuration",
            context={"config_path": path, "field": ",".join(fields)},
            original_error=e,
        )
