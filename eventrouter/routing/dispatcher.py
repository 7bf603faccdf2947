"""FanoutSink — one sink made of several.

Configuring ``sink = "stdout,kafka"`` yields a ``FanoutSink`` that hands
every change to each member in order.  A member that raises despite the
sink contract is logged and skipped; the remaining members still receive
the change.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from eventrouter.models.envelopes import EventData

if TYPE_CHECKING:
    from eventrouter.routing.sinks import EventSink

logger = logging.getLogger(__name__)


class FanoutSink:
    """Delivers each change to every member sink.

    Usage
    -----
    >>> fanout = FanoutSink([stdout_sink, kafka_sink])
    >>> fanout.accept(EventData.build(new_event, old_event))
    """

    def __init__(self, sinks: list[EventSink] | None = None) -> None:
        self._sinks: list[EventSink] = []
        for sink in sinks or []:
            self.register_sink(sink)

    @property
    def sink_name(self) -> str:
        return "fanout(" + ",".join(s.sink_name for s in self._sinks) + ")"

    # ------------------------------------------------------------------
    # Sink management
    # ------------------------------------------------------------------

    def register_sink(self, sink: EventSink) -> None:
        """Add a member.  Registering the same instance twice is ignored."""
        if sink not in self._sinks:
            self._sinks.append(sink)
            logger.info("Registered sink: %s", sink.sink_name)

    @property
    def registered_sinks(self) -> list[EventSink]:
        """Return a copy of the member list."""
        return list(self._sinks)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def accept(self, envelope: EventData) -> list[str]:
        """Deliver to all members; return the names of those that succeeded."""
        succeeded: list[str] = []
        for sink in self._sinks:
            try:
                sink.accept(envelope)
                succeeded.append(sink.sink_name)
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "Sink %s failed for event %s: %s",
                    sink.sink_name,
                    envelope.event.metadata.name,
                    exc,
                )

        if len(succeeded) < len(self._sinks):
            logger.warning(
                "Event %s: %d/%d sinks succeeded",
                envelope.event.metadata.name,
                len(succeeded),
                len(self._sinks),
            )
        return succeeded

    def close(self) -> None:
        """Close every member that supports it."""
        for sink in self._sinks:
            close = getattr(sink, "close", None)
            if close is None:
                continue
            try:
                close()
            except Exception as exc:  # noqa: BLE001
                logger.error("Failed to close sink %s: %s", sink.sink_name, exc)
