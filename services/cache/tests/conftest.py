"""Shared fixtures for cache service unit tests."""

import pytest
from fetchers import BaseFetcher
from storage import HashStore


class StaticFetcher(BaseFetcher):
    """Fetcher serving a fixed decoded document and counting calls."""

    def __init__(self, content, error=None):
        super().__init__("https://example.com/data.json", source_name="test_source")
        self.content = content
        self.error = error
        self.calls = 0

    async def fetch(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return {
            "content": self.content,
            "metadata": {"http_status": 200, "source_url": self.url},
        }


class FakeClock:
    """Settable epoch-millisecond clock."""

    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
async def store():
    """Private in-memory store, closed after the test."""
    hash_store = HashStore(":memory:")
    await hash_store.initialize()
    yield hash_store
    await hash_store.close()


@pytest.fixture
def make_fetcher():
    """Factory for StaticFetcher instances."""

    def factory(content=None, error=None) -> StaticFetcher:
        return StaticFetcher(content if content is not None else [], error=error)

    return factory


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sample_entries():
    """Blocklist document mixing plaintext, digests and invalid entries."""
    return [
        {"hashes": ["www.evil.example", "bad.example"], "type": 3, "match": 1, "level": 2},
        {"hashes": ["https://www.phish.example/login"], "type": 5, "match": 2, "level": 1},
        {"hashes": ["", "   ", 42, None], "type": 1, "match": 1, "level": 1},
        {"hashes": "not-a-list", "type": 1, "match": 1, "level": 1},
        {"type": 1, "match": 1, "level": 1},
        "garbage",
    ]
