from typing import Dict, List
from unittest.mock import patch

import pytest

from monitoring.metrics import PrometheusMetrics


@pytest.fixture
def records_by_collection() -> Dict[str, int]:
    return {
        "domain_hashes": 120,
        "url_hashes": 45,
    }


@pytest.fixture
def metrics() -> PrometheusMetrics:
    return PrometheusMetrics(
        pushgateway_url="http://example.com:9091",
        job_name="test_job",
        namespace="example",
        subsystem="blocklist",
        default_labels={"environment": "test"},
    )


def gather_samples(registry) -> List:
    samples = []
    for metric in registry.collect():
        samples.extend(metric.samples)
    return samples


def test_push_update_snapshot_creates_expected_metrics(
    metrics: PrometheusMetrics, records_by_collection: Dict[str, int]
) -> None:
    with patch("monitoring.metrics.push_to_gateway") as push_mock:
        pushed = metrics.push_update_snapshot(
            records_by_collection=records_by_collection,
            last_update_ms=1_700_000_000_000,
            duration_seconds=2.5,
        )

    assert pushed is True
    push_mock.assert_called_once()
    kwargs = push_mock.call_args.kwargs
    assert kwargs["job"] == "test_job"
    assert "instance" in kwargs["grouping_key"]

    by_name = {}
    for sample in gather_samples(kwargs["registry"]):
        by_name.setdefault(sample.name, []).append(sample)

    records = {
        sample.labels["collection"]: sample.value
        for sample in by_name["example_blocklist_records"]
    }
    assert records["domain_hashes"] == pytest.approx(120.0)
    assert records["url_hashes"] == pytest.approx(45.0)

    assert by_name["example_blocklist_last_update_timestamp"][0].value == pytest.approx(
        1_700_000_000.0
    )
    assert by_name["example_blocklist_update_duration_seconds"][0].value == pytest.approx(2.5)


def test_duration_metric_is_optional(
    metrics: PrometheusMetrics, records_by_collection: Dict[str, int]
) -> None:
    registry = metrics.build_update_registry(records_by_collection, last_update_ms=0)

    names = {sample.name for sample in gather_samples(registry)}
    assert "example_blocklist_update_duration_seconds" not in names
    assert "example_blocklist_records" in names


def test_push_failure_is_logged_not_raised(
    metrics: PrometheusMetrics, records_by_collection: Dict[str, int]
) -> None:
    with patch(
        "monitoring.metrics.push_to_gateway", side_effect=OSError("connection refused")
    ):
        pushed = metrics.push_update_snapshot(records_by_collection, last_update_ms=1)

    assert pushed is False


def test_defaults_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("PROMETHEUS_PUSHGATEWAY_URL", "http://gateway:9091")
    monkeypatch.setenv("ENVIRONMENT", "staging")

    metrics = PrometheusMetrics()

    assert metrics.pushgateway_url == "http://gateway:9091"
    assert metrics.default_labels == {"environment": "staging"}
