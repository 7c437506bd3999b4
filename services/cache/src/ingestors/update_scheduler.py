"""Staleness policy for blocklist refreshes."""

from typing import Any, Callable, Dict

import structlog
from common import now_ms
from common.constants import METADATA_LAST_UPDATE, STALENESS_WINDOW_MS
from storage import HashStore
from .blocklist_ingestor import BlocklistIngestor

logger = structlog.get_logger()


class UpdateScheduler:
    """Decides whether the cached blocklist is due for a refresh.

    There is no background timer. Hosts call check_for_update() whenever
    convenient (startup, periodic wake) and a refresh runs only when the
    stored data is older than the staleness window.
    """

    def __init__(
        self,
        store: HashStore,
        ingestor: BlocklistIngestor,
        staleness_window_ms: int = STALENESS_WINDOW_MS,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store
        self.ingestor = ingestor
        self.staleness_window_ms = staleness_window_ms
        self.clock = clock

    def is_stale(self, last_update: Any) -> bool:
        """True if ``last_update`` is missing, unusable or outside the window."""
        if isinstance(last_update, bool) or not isinstance(last_update, (int, float)):
            return True
        if not last_update:
            return True
        return (self.clock() - last_update) > self.staleness_window_ms

    async def check_for_update(self) -> Dict[str, Any]:
        """
        Refresh the blocklist if the stored copy is stale.

        Returns:
            The update summary when a refresh ran, otherwise
            {"updated": False, "lastUpdate": ms}

        Raises:
            FetchError, DataFormatError, StorageError: From the refresh
        """
        last_update = await self.store.get_metadata(METADATA_LAST_UPDATE)

        if self.is_stale(last_update):
            logger.info(
                "Blocklist is stale, updating",
                last_update=last_update,
                staleness_window_ms=self.staleness_window_ms,
            )
            return await self.ingestor.update_database()

        logger.debug("Blocklist is fresh", last_update=last_update)
        return {"updated": False, "lastUpdate": last_update}
