"""Blocklist ingestion: fetch, validate, hash and repopulate the store."""

from typing import Any, Callable, Dict, List, Optional, Tuple

import structlog
from common import DataFormatError, IntelCacheException, now_ms
from common.constants import MATCH_DOMAIN, MATCH_URL, METADATA_LAST_UPDATE
from schemas import (
    HashRecord,
    calculate_hash,
    is_hex_digest,
    looks_like_domain,
    looks_like_url,
    normalize_domain_entry,
    normalize_url_entry,
)
from fetchers import BaseFetcher
from storage import HashStore, Collection, HASH_COLLECTIONS
from .entry_validator import EntryValidator

logger = structlog.get_logger()


def derive_hash(value: str, match: int) -> str:
    """
    Storage key for one trimmed blocklist value.

    Plaintext domains and URLs are normalized and digested so they line up
    with the digests computed at lookup time. Anything else is taken to be a
    precomputed digest and kept as is (lowercased).

    Args:
        value: Trimmed, non-empty value from an entry's ``hashes``
        match: Entry discriminator (1 = domain, 2 = URL)

    Returns:
        Hex digest used as the record key
    """
    if match == MATCH_DOMAIN and looks_like_domain(value):
        return calculate_hash(normalize_domain_entry(value))
    if match == MATCH_URL and looks_like_url(value):
        return calculate_hash(normalize_url_entry(value))
    return value.lower()


class BlocklistIngestor:
    """Refreshes the local hash store from the remote blocklist."""

    def __init__(
        self,
        store: HashStore,
        fetcher: BaseFetcher,
        validator: Optional[EntryValidator] = None,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Initialize ingestor.

        Args:
            store: Store that receives the records
            fetcher: Fetcher for the remote document
            validator: Entry validator (non-strict by default)
            clock: Returns the current time in epoch milliseconds
        """
        self.store = store
        self.fetcher = fetcher
        self.validator = validator or EntryValidator(strict=False)
        self.clock = clock
        self.stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> Dict[str, int]:
        return {
            "entries_skipped": 0,
            "hashes_skipped": 0,
            "domain_records": 0,
            "url_records": 0,
            "non_digest_values": 0,
        }

    async def fetch_remote(self) -> List[Any]:
        """
        Fetch the remote document and check its top-level shape.

        Returns:
            Raw entries of the top-level JSON array

        Raises:
            FetchError: On transport failure or non-2xx status
            DataFormatError: If the document is not a JSON array
        """
        result = await self.fetcher.fetch()
        content = result["content"]

        if not isinstance(content, list):
            logger.error(
                "Blocklist document is not a JSON array",
                url=self.fetcher.url,
                received_type=type(content).__name__,
            )
            raise DataFormatError(
                "Invalid data format: expected a JSON array",
                context={
                    "url": self.fetcher.url,
                    "received_type": type(content).__name__,
                },
            )

        logger.info("Blocklist fetched", url=self.fetcher.url, entries=len(content))
        return content

    def build_records(self, entries: List[Any]) -> Tuple[List[HashRecord], List[HashRecord]]:
        """
        Turn raw entries into domain and URL records without touching the store.

        Invalid entries and empty or non-string values are skipped.

        Returns:
            Tuple of (domain_records, url_records)
        """
        valid_entries = self.validator.validate(entries)
        self.stats["entries_skipped"] += len(entries) - len(valid_entries)

        domain_records: List[HashRecord] = []
        url_records: List[HashRecord] = []

        for entry in valid_entries:
            target = domain_records if entry.match == MATCH_DOMAIN else url_records

            for value in entry.hashes:
                if not isinstance(value, str) or not value.strip():
                    self.stats["hashes_skipped"] += 1
                    continue

                key = derive_hash(value.strip(), entry.match)
                if not is_hex_digest(key):
                    # Kept, but it can never equal a lookup digest
                    self.stats["non_digest_values"] += 1
                    logger.debug("Blocklist value is not a SHA-256 digest", value=key)

                target.append(
                    HashRecord(
                        hash=key,
                        type=entry.type,
                        level=entry.level,
                    )
                )

        self.stats["domain_records"] += len(domain_records)
        self.stats["url_records"] += len(url_records)
        return domain_records, url_records

    async def process_entries(self, entries: List[Any]) -> Dict[str, Any]:
        """
        Replace the stored dataset with the given entries.

        Both hash collections are cleared before any record is written, and
        ``lastUpdate`` is written only after every record is stored.

        Returns:
            Summary: {"updated": True, "count": records written, "timestamp": ms}

        Raises:
            DataFormatError: If ``entries`` is not a list
            StorageError: If the store fails
        """
        if not isinstance(entries, list):
            raise DataFormatError(
                "Invalid data format: expected a JSON array",
                context={"received_type": type(entries).__name__},
            )

        self.stats = self._empty_stats()
        self.validator.reset_statistics()

        domain_records, url_records = self.build_records(entries)

        for collection in HASH_COLLECTIONS:
            await self.store.clear_collection(collection)

        written = await self.store.put_many(Collection.DOMAIN_HASHES, domain_records)
        written += await self.store.put_many(Collection.URL_HASHES, url_records)

        timestamp = self.clock()
        await self.store.set_metadata(METADATA_LAST_UPDATE, timestamp)

        logger.info(
            "Blocklist ingestion complete",
            records_written=written,
            domain_records=self.stats["domain_records"],
            url_records=self.stats["url_records"],
            entries_skipped=self.stats["entries_skipped"],
            hashes_skipped=self.stats["hashes_skipped"],
            non_digest_values=self.stats["non_digest_values"],
            last_update=timestamp,
        )

        return {"updated": True, "count": written, "timestamp": timestamp}

    async def update_database(self) -> Dict[str, Any]:
        """
        Fetch the remote blocklist and replace the stored dataset.

        Errors propagate; the previous dataset stays in place when the fetch
        or the top-level validation fails.

        Returns:
            Summary from process_entries()
        """
        logger.info("Starting blocklist update", url=self.fetcher.url)

        try:
            entries = await self.fetch_remote()
            return await self.process_entries(entries)

        except IntelCacheException as e:
            logger.error(
                "Blocklist update failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

    def get_statistics(self) -> dict:
        """Statistics of the latest ingestion, validator counters included."""
        return {**self.stats, "validation": self.validator.get_statistics()}
