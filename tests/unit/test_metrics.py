"""Unit tests for the Prometheus delivery counters."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from prometheus_client import CollectorRegistry

from eventrouter.core.metrics import DeliveryMetrics, EventCategory, classify


class TestClassify:
    @pytest.mark.parametrize(
        "event_type, category",
        [
            ("Warning", EventCategory.WARNINGS),
            ("Normal", EventCategory.NORMAL),
            ("Info", EventCategory.INFO),
            ("", EventCategory.UNKNOWN),
            ("warning", EventCategory.UNKNOWN),
            ("Critical", EventCategory.UNKNOWN),
        ],
    )
    def test_category_mapping(self, event_type, category):
        assert classify(event_type) is category


class TestRecord:
    def test_increments_labelled_counter(self, metrics, make_event):
        metrics.record(make_event(event_type="Warning", reason="BackOff"))
        metrics.record(make_event(event_type="Warning", reason="BackOff"))

        assert metrics.value(EventCategory.WARNINGS) == 2
        assert (
            metrics.value(
                EventCategory.WARNINGS,
                involved_object_kind="Pod",
                involved_object_name="test-pod",
                involved_object_namespace="default",
                reason="BackOff",
                source="test-host",
            )
            == 2
        )
        assert metrics.value(EventCategory.WARNINGS, reason="Pulled") == 0

    @pytest.mark.parametrize(
        "event_type, category",
        [
            ("Normal", EventCategory.NORMAL),
            ("Info", EventCategory.INFO),
            ("SomethingElse", EventCategory.UNKNOWN),
        ],
    )
    def test_only_matching_bucket_moves(self, metrics, make_event, event_type, category):
        metrics.record(make_event(event_type=event_type))

        for other in EventCategory:
            expected = 1 if other is category else 0
            assert metrics.value(other) == expected

    def test_none_is_a_noop(self, metrics):
        metrics.record(None)
        assert all(metrics.value(c) == 0 for c in EventCategory)

    def test_counter_errors_are_swallowed(self, metrics, make_event):
        broken = MagicMock()
        broken.labels.side_effect = ValueError("bad label")
        metrics._counters[EventCategory.NORMAL] = broken

        metrics.record(make_event(event_type="Normal"))

    def test_instances_are_independent(self, make_event):
        first = DeliveryMetrics()
        second = DeliveryMetrics()
        first.record(make_event(event_type="Normal"))
        assert second.value(EventCategory.NORMAL) == 0

    def test_injected_registry_is_used(self, make_event):
        registry = CollectorRegistry()
        metrics = DeliveryMetrics(registry)
        metrics.record(make_event(event_type="Info"))
        names = {s.name for m in registry.collect() for s in m.samples}
        assert "heptio_eventrouter_info_total" in names


class TestExposition:
    def test_serve_and_close(self, metrics):
        server = MagicMock()
        with patch(
            "eventrouter.core.metrics.start_http_server", return_value=(server, MagicMock())
        ) as start:
            metrics.serve(9102, addr="127.0.0.1")

        start.assert_called_once_with(9102, addr="127.0.0.1", registry=metrics.registry)
        metrics.close()
        server.shutdown.assert_called_once()
        server.server_close.assert_called_once()

    def test_close_without_serve(self, metrics):
        metrics.close()
