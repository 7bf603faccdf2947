"""Prometheus delivery counters — the router's metrics side channel.

Four counters, one per Event category, each labelled by the involved
object and the reporting host:

- ``heptio_eventrouter_warnings_total``
- ``heptio_eventrouter_normal_total``
- ``heptio_eventrouter_info_total``
- ``heptio_eventrouter_unknown_total``

The counters live in a ``CollectorRegistry`` owned by (or injected into) a
``DeliveryMetrics`` instance rather than the process-global default
registry, so each instance has an explicit lifecycle.  Recording never
raises into the caller.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from prometheus_client import CollectorRegistry, Counter, start_http_server

from eventrouter.models.events import Event

logger = logging.getLogger(__name__)

LABEL_NAMES = [
    "involved_object_kind",
    "involved_object_name",
    "involved_object_namespace",
    "reason",
    "source",
]


class EventCategory(str, Enum):
    """Counter buckets.  Anything unrecognized lands in ``UNKNOWN``."""

    WARNINGS = "warnings"
    NORMAL = "normal"
    INFO = "info"
    UNKNOWN = "unknown"


_CATEGORY_BY_TYPE: dict[str, EventCategory] = {
    "Warning": EventCategory.WARNINGS,
    "Normal": EventCategory.NORMAL,
    "Info": EventCategory.INFO,
}


def classify(event_type: str) -> EventCategory:
    """Map an Event ``type`` onto a counter bucket."""
    return _CATEGORY_BY_TYPE.get(event_type, EventCategory.UNKNOWN)


class DeliveryMetrics:
    """Owns the four delivery counters and their exposition server.

    Parameters
    ----------
    registry:
        Registry to register the counters in.  A private registry is
        created when omitted.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self._counters: dict[EventCategory, Counter] = {
            EventCategory.WARNINGS: Counter(
                "heptio_eventrouter_warnings_total",
                "Total number of warning events in the kubernetes cluster",
                LABEL_NAMES,
                registry=self.registry,
            ),
            EventCategory.NORMAL: Counter(
                "heptio_eventrouter_normal_total",
                "Total number of normal events in the kubernetes cluster",
                LABEL_NAMES,
                registry=self.registry,
            ),
            EventCategory.INFO: Counter(
                "heptio_eventrouter_info_total",
                "Total number of info events in the kubernetes cluster",
                LABEL_NAMES,
                registry=self.registry,
            ),
            EventCategory.UNKNOWN: Counter(
                "heptio_eventrouter_unknown_total",
                "Total number of events of unknown type in the kubernetes cluster",
                LABEL_NAMES,
                registry=self.registry,
            ),
        }
        self._server: Any = None

    def record(self, event: Event | None) -> None:
        """Increment the counter matching *event*'s category.

        ``None`` is a no-op.  Counter errors are logged and swallowed.
        """
        if event is None:
            return
        try:
            category = classify(event.type)
            self._counters[category].labels(
                involved_object_kind=event.involved_object.kind,
                involved_object_name=event.involved_object.name,
                involved_object_namespace=event.involved_object.namespace,
                reason=event.reason,
                source=event.source.host,
            ).inc()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to record event metrics: %s", exc)

    def value(self, category: EventCategory, **labels: str) -> float:
        """Return a counter's current value, summed over unspecified labels."""
        name = f"heptio_eventrouter_{category.value}_total"
        total = 0.0
        for metric in self.registry.collect():
            for sample in metric.samples:
                if sample.name != name:
                    continue
                if all(sample.labels.get(k) == v for k, v in labels.items()):
                    total += sample.value
        return total

    # ------------------------------------------------------------------
    # Exposition
    # ------------------------------------------------------------------

    def serve(self, port: int, addr: str = "0.0.0.0") -> None:
        """Start the pull-based ``/metrics`` HTTP endpoint."""
        self._server = start_http_server(port, addr=addr, registry=self.registry)
        logger.info("Serving Prometheus metrics on %s:%d", addr, port)

    def close(self) -> None:
        """Stop the exposition server if one was started."""
        if self._server is None:
            return
        # prometheus_client >= 0.17 returns (server, thread)
        server = self._server[0] if isinstance(self._server, tuple) else self._server
        if server is not None:
            server.shutdown()
            server.server_close()
        self._server = None
        logger.info("Stopped Prometheus metrics server")
