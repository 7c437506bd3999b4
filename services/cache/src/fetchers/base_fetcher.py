"""Fetcher interface used by the ingestor."""

from abc import ABC, abstractmethod
from typing import Dict, Any


class BaseFetcher(ABC):
    """Source of the decoded blocklist document."""

    def __init__(self, url: str, source_name: str = "blocklist"):
        self.url = url
        # Log context only
        self.source_name = source_name

    @abstractmethod
    async def fetch(self) -> Dict[str, Any]:
        """
        Return ``{"content": decoded JSON, "metadata": {...}}``.

        Raises:
            FetchError: Transport failure or non-2xx status
            DataFormatError: Body is not JSON
        """
