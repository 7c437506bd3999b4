"""Validation of raw blocklist entries."""

from typing import Any, List
import structlog
from pydantic import ValidationError
from schemas import BlocklistEntry
from common import DataFormatError

logger = structlog.get_logger()


class EntryValidator:
    """Validator for entries of the remote blocklist document."""

    def __init__(self, strict: bool = False):
        """
        Initialize entry validator.

        Args:
            strict: If True, raise on the first invalid entry;
                   If False, log warnings and skip invalid entries
        """
        self.strict = strict
        self.stats = {
            "total": 0,
            "valid": 0,
            "invalid": 0,
        }

    def validate(self, entries: List[Any]) -> List[BlocklistEntry]:
        """
        Validate raw decoded entries.

        Args:
            entries: Elements of the top-level JSON array

        Returns:
            List of valid BlocklistEntry objects, in document order

        Raises:
            DataFormatError: If strict=True and an entry is invalid
        """
        if not entries:
            logger.warning("No blocklist entries to validate")
            return []

        valid_entries = []
        invalid_count = 0

        for index, raw_entry in enumerate(entries):
            self.stats["total"] += 1

            try:
                entry = BlocklistEntry.model_validate(raw_entry)
            except ValidationError as e:
                invalid_count += 1
                self.stats["invalid"] += 1

                logger.warning(
                    "Skipping invalid blocklist entry",
                    index=index,
                    errors=e.error_count(),
                    fields=sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]}),
                )

                if self.strict:
                    raise DataFormatError(
                        f"Invalid blocklist entry at index {index}",
                        context={"index": index},
                        original_error=e,
                    )
                continue

            valid_entries.append(entry)
            self.stats["valid"] += 1

        logger.info(
            "Blocklist entry validation complete",
            total=len(entries),
            valid=len(valid_entries),
            invalid=invalid_count,
        )

        return valid_entries

    def get_statistics(self) -> dict:
        """
        Get validation statistics.

        Returns:
            Dictionary with validation stats
        """
        return self.stats.copy()

    def reset_statistics(self):
        """Reset validation statistics."""
        self.stats = {
            "total": 0,
            "valid": 0,
            "invalid": 0,
        }
