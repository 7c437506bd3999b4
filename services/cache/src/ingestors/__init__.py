"""Ingestors package."""

from ingestors.entry_validator import EntryValidator
from ingestors.blocklist_ingestor import BlocklistIngestor, derive_hash
from ingestors.update_scheduler import UpdateScheduler

__all__ = ["EntryValidator", "BlocklistIngestor", "derive_hash", "UpdateScheduler"]
