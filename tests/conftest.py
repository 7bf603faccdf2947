"""Shared test fixtures for eventrouter."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

import pytest

from eventrouter.core.metrics import DeliveryMetrics
from eventrouter.models.envelopes import EventData
from eventrouter.models.events import Event


class RecordingSink:
    """A sink that remembers every call."""

    def __init__(self, name: str = "recording") -> None:
        self._name = name
        self._lock = threading.Lock()
        self.calls: list[tuple[Event, Event | None]] = []
        self.envelopes: list[EventData] = []

    @property
    def sink_name(self) -> str:
        return self._name

    def accept(self, envelope: EventData) -> None:
        with self._lock:
            self.envelopes.append(envelope)
            self.calls.append((envelope.event, envelope.old_event))

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.calls)

    @property
    def positions(self) -> list[str]:
        with self._lock:
            return [new.position_token for new, _ in self.calls]


class FailingSink:
    """A sink that breaks the contract and raises."""

    @property
    def sink_name(self) -> str:
        return "failing"

    def accept(self, envelope: EventData) -> None:
        raise RuntimeError("sink failure for testing")


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def make_recording_sink() -> Callable[[str], RecordingSink]:
    return RecordingSink


@pytest.fixture
def failing_sink() -> FailingSink:
    return FailingSink()


@pytest.fixture
def metrics() -> DeliveryMetrics:
    """DeliveryMetrics backed by a private registry."""
    return DeliveryMetrics()


@pytest.fixture
def checkpoints() -> list[str]:
    """A list the router's checkpoint callback appends to."""
    return []


# ---------------------------------------------------------------------------
# Event factories shared across test modules
# ---------------------------------------------------------------------------


def event_dict(
    name: str = "test-event",
    resource_version: str = "100",
    event_type: str = "Normal",
    reason: str = "Created",
    namespace: str = "default",
    **overrides: Any,
) -> dict[str, Any]:
    """Kubernetes-shaped JSON for an Event."""
    data: dict[str, Any] = {
        "metadata": {
            "name": name,
            "namespace": namespace,
            "resourceVersion": resource_version,
            "uid": f"uid-{name}",
        },
        "type": event_type,
        "reason": reason,
        "message": f"{reason} {name}",
        "count": 1,
        "involvedObject": {
            "kind": "Pod",
            "name": "test-pod",
            "namespace": namespace,
            "apiVersion": "v1",
            "uid": "pod-uid-1",
        },
        "source": {"component": "kubelet", "host": "test-host"},
        "firstTimestamp": "2024-05-01T12:00:00Z",
        "lastTimestamp": "2024-05-01T12:00:05Z",
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_event() -> Callable[..., Event]:
    """Factory fixture: build an Event with sensible defaults."""

    def _factory(**kwargs: Any) -> Event:
        return Event.model_validate(event_dict(**kwargs))

    return _factory


@pytest.fixture
def make_event_dict() -> Callable[..., dict[str, Any]]:
    """Factory fixture: build Kubernetes JSON for an Event."""
    return event_dict
