"""Threat intel cache service: the API embedded by the host extension."""

import time
from typing import Any, Callable, Dict, Optional

import structlog
from common import StorageError, now_ms, setup_logging
from config import CacheSettings, load_settings
from fetchers import BaseFetcher, HTTPFetcher
from ingestors import BlocklistIngestor, EntryValidator, UpdateScheduler
from lookup import UrlChecker
from monitoring.metrics import PrometheusMetrics
from storage import HashStore, HASH_COLLECTIONS

logger = structlog.get_logger()


class ThreatCacheService:
    """Owns one store handle and wires ingestion, scheduling and lookups.

    Usage:
        async with ThreatCacheService(settings) as service:
            await service.check_for_update()
            verdict = await service.check_url_security("https://example.com/")
    """

    def __init__(
        self,
        settings: Optional[CacheSettings] = None,
        store: Optional[HashStore] = None,
        fetcher: Optional[BaseFetcher] = None,
        metrics: Optional[PrometheusMetrics] = None,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Initialize the service.

        Args:
            settings: Settings; loaded from file/environment if None
            store: Store handle; one is created from settings.db_path if None
            fetcher: Blocklist fetcher; an HTTPFetcher for settings.data_url if None
            metrics: Metrics publisher; created when settings.metrics_enabled
            clock: Returns the current time in epoch milliseconds
        """
        self.settings = settings or load_settings()
        self.store = store or HashStore(self.settings.db_path)
        self.fetcher = fetcher or HTTPFetcher(
            url=self.settings.data_url,
            timeout=self.settings.http_timeout,
            retries=self.settings.http_retries,
            backoff=self.settings.http_backoff,
        )

        if metrics is None and self.settings.metrics_enabled:
            metrics = PrometheusMetrics(pushgateway_url=self.settings.pushgateway_url)
        self.metrics = metrics

        self.ingestor = BlocklistIngestor(
            self.store,
            self.fetcher,
            validator=EntryValidator(strict=self.settings.strict_validation),
            clock=clock,
        )
        self.scheduler = UpdateScheduler(
            self.store,
            self.ingestor,
            staleness_window_ms=self.settings.staleness_window_ms,
            clock=clock,
        )
        self.checker = UrlChecker(self.store)

    @classmethod
    def from_config(
        cls,
        config_path: Optional[str] = None,
        json_logs: bool = False,
        **kwargs: Any,
    ) -> "ThreatCacheService":
        """
        Build a service from file/environment settings and configure logging.

        Args:
            config_path: YAML config path (see load_settings)
            json_logs: Output logs in JSON format
            **kwargs: Passed to the constructor (store, fetcher, metrics, clock)

        Raises:
            ConfigurationError: If the settings are invalid
        """
        settings = load_settings(config_path)
        log = setup_logging(
            level=settings.log_level,
            service_name="intel-cache",
            json_format=json_logs,
        )
        log.info(
            "Starting threat intel cache",
            db_path=settings.db_path,
            data_url=settings.data_url,
            log_level=settings.log_level,
        )
        return cls(settings, **kwargs)

    async def __aenter__(self) -> "ThreatCacheService":
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def init(self) -> None:
        """Open the store. Safe to call more than once."""
        await self.store.initialize()

    async def close(self) -> None:
        """Release the store connection."""
        await self.store.close()

    async def _publish_metrics(self, summary: Dict[str, Any], duration_seconds: float) -> None:
        if self.metrics is None:
            return
        try:
            records = {
                collection.value: await self.store.count(collection)
                for collection in HASH_COLLECTIONS
            }
        except StorageError as e:
            logger.warning("Skipping metrics push, store count failed", error=str(e))
            return
        self.metrics.push_update_snapshot(
            records_by_collection=records,
            last_update_ms=summary["timestamp"],
            duration_seconds=duration_seconds,
        )

    async def update_database(self) -> Dict[str, Any]:
        """
        Forced refresh, bypassing the staleness check.

        Raises:
            FetchError, DataFormatError, StorageError
        """
        started = time.monotonic()
        summary = await self.ingestor.update_database()
        await self._publish_metrics(summary, time.monotonic() - started)
        return summary

    async def check_for_update(self) -> Dict[str, Any]:
        """
        Refresh only when the cached blocklist is stale.

        Raises:
            FetchError, DataFormatError, StorageError
        """
        started = time.monotonic()
        result = await self.scheduler.check_for_update()
        if result.get("updated"):
            await self._publish_metrics(result, time.monotonic() - started)
        return result

    async def check_url_security(self, url: str) -> Dict[str, Any]:
        """
        Verdict for one URL as a plain dict; never raises.

        Returns:
            {"secure": True|False|None, "type": int, "level": int, "match": int}
            plus "error" when the lookup failed
        """
        verdict = await self.checker.check_url_security(url)
        return verdict.to_dict()
