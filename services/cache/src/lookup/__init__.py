"""Lookup package."""

from lookup.url_checker import UrlChecker, is_trusted_gateway

__all__ = ["UrlChecker", "is_trusted_gateway"]
