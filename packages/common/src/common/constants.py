"""Configuration constants for the threat intel cache."""

from typing import Final

# Remote source
DEFAULT_DATA_URL: Final[str] = (
    "https://raw.githubusercontent.com/miladnouri/motmaenbash-data/refs/heads/main/data/data.json"
)

# HTTP Fetcher Defaults
DEFAULT_HTTP_TIMEOUT: Final[int] = 30
DEFAULT_HTTP_RETRIES: Final[int] = 1  # single attempt, retry policy belongs to the caller
DEFAULT_HTTP_BACKOFF: Final[float] = 5.0
MAX_HTTP_TIMEOUT: Final[int] = 300  # 5 minutes
MIN_HTTP_TIMEOUT: Final[int] = 1
MAX_HTTP_RETRIES: Final[int] = 10

# Storage
DEFAULT_DB_PATH: Final[str] = "data/intel_cache.db"
SCHEMA_VERSION: Final[int] = 1
METADATA_LAST_UPDATE: Final[str] = "lastUpdate"

# Blocklist match discriminators
MATCH_NONE: Final[int] = 0
MATCH_DOMAIN: Final[int] = 1
MATCH_URL: Final[int] = 2

# Update policy (milliseconds)
STALENESS_WINDOW_MS: Final[int] = 86_400_000  # 24 hours

# Trusted payment gateway zone, only over https
TRUSTED_GATEWAY_SUFFIX: Final[str] = ".shaparak.ir"
TRUSTED_GATEWAY_SCHEME: Final[str] = "https"

# Service Defaults
DEFAULT_LOG_LEVEL: Final[str] = "INFO"
DEFAULT_CONFIG_PATH: Final[str] = "config/cache.yaml"
DEFAULT_PUSHGATEWAY_URL: Final[str] = "http://prometheus-pushgateway:9091"
