"""Utilities for publishing cache update metrics to Prometheus."""

from __future__ import annotations

import os
import socket
from dataclasses import dataclass, field
from typing import Mapping, MutableMapping, Optional

import structlog
from prometheus_client import CollectorRegistry, Gauge, push_to_gateway

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class PrometheusMetrics:
    """Helper to publish blocklist update snapshots to Prometheus Pushgateway."""

    pushgateway_url: Optional[str] = None
    job_name: str = "intel_cache_update"
    namespace: str = "intel_cache"
    subsystem: str = "blocklist"
    default_labels: MutableMapping[str, str] = field(default_factory=dict)
    timeout_seconds: int = 5
    _hostname: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.pushgateway_url:
            self.pushgateway_url = os.getenv(
                "PROMETHEUS_PUSHGATEWAY_URL",
                "http://prometheus-pushgateway:9091",
            )
        if not self.default_labels:
            self.default_labels = {
                "environment": os.getenv("ENVIRONMENT", "development"),
            }
        self._hostname = socket.gethostname()

    @property
    def _metric_prefix(self) -> str:
        return f"{self.namespace}_{self.subsystem}".replace("-", "_")

    def _registry(self) -> CollectorRegistry:
        return CollectorRegistry()

    def build_update_registry(
        self,
        records_by_collection: Mapping[str, int],
        last_update_ms: int,
        duration_seconds: Optional[float] = None,
    ) -> CollectorRegistry:
        """Build a registry describing one completed update."""
        registry = self._registry()
        label_names = sorted(self.default_labels)

        records_metric = Gauge(
            f"{self._metric_prefix}_records",
            "Records stored per hash collection after the latest update",
            labelnames=["collection", *label_names],
            registry=registry,
        )
        for collection, count in records_by_collection.items():
            records_metric.labels(collection=collection, **self.default_labels).set(
                float(count)
            )

        last_update_metric = Gauge(
            f"{self._metric_prefix}_last_update_timestamp",
            "UTC timestamp (seconds) of the latest successful update",
            labelnames=label_names,
            registry=registry,
        )
        last_update_metric.labels(**self.default_labels).set(last_update_ms / 1000.0)

        if duration_seconds is not None:
            duration_metric = Gauge(
                f"{self._metric_prefix}_update_duration_seconds",
                "Runtime of the latest update in seconds",
                labelnames=label_names,
                registry=registry,
            )
            duration_metric.labels(**self.default_labels).set(duration_seconds)

        return registry

    def push_update_snapshot(
        self,
        records_by_collection: Mapping[str, int],
        last_update_ms: int,
        duration_seconds: Optional[float] = None,
    ) -> bool:
        """Push an update snapshot; returns False if the push failed."""
        registry = self.build_update_registry(
            records_by_collection, last_update_ms, duration_seconds
        )

        try:
            push_to_gateway(
                self.pushgateway_url,
                job=self.job_name,
                registry=registry,
                grouping_key={"instance": self._hostname},
                timeout=self.timeout_seconds,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Failed to push metrics to Prometheus Pushgateway",
                pushgateway_url=self.pushgateway_url,
                error=str(exc),
            )
            return False
        return True
