"""Error taxonomy of the threat intel cache."""

from typing import Optional, Dict, Any


class IntelCacheException(Exception):
    """Base class; carries a context dict and the wrapped cause."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.original_error = original_error

    def __str__(self) -> str:
        text = self.message
        if self.context:
            details = ", ".join(f"{k}={v}" for k, v in self.context.items())
            text = f"{text} ({details})"
        if self.original_error:
            cause = type(self.original_error).__name__
            text = f"{text} [caused by: {cause}: {self.original_error}]"
        return text


class FetchError(IntelCacheException):
    """Transport failure, timeout or non-2xx response (context: url, status_code, attempts)."""


class DataFormatError(IntelCacheException):
    """Fetched document is not a JSON array, or an entry failed strict validation."""


class StorageError(IntelCacheException):
    """SQLite or filesystem failure in the hash store (context: collection, operation)."""


class ParseError(IntelCacheException):
    """Malformed URL. Recovered inside the normalizer."""


class ConfigurationError(IntelCacheException):
    """Invalid settings file or value (context: config_path, field)."""
