"""Common utilities package."""

from common.logging import setup_logging
from common.exceptions import (
    IntelCacheException,
    FetchError,
    DataFormatError,
    StorageError,
    ParseError,
    ConfigurationError,
)
from common.utils import get_env, now_ms
from common import constants

__all__ = [
    "setup_logging",
    "IntelCacheException",
    "FetchError",
    "DataFormatError",
    "StorageError",
    "ParseError",
    "ConfigurationError",
    "get_env",
    "now_ms",
    "constants",
]
