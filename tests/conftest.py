"""Pytest configuration and fixtures for integration tests."""

from fixtures.mock_servers import (
    mock_blocklist_server,
    mock_error_responses_server,
)

from fixtures.sample_data import (
    sample_blocklist_document,
    sample_malicious_urls,
    sample_unknown_urls,
)

__all__ = [
    # Mock server fixtures
    "mock_blocklist_server",
    "mock_error_responses_server",
    # Sample data fixtures
    "sample_blocklist_document",
    "sample_malicious_urls",
    "sample_unknown_urls",
]
