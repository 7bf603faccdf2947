"""Sink protocol for eventrouter destinations.

All sinks implement the ``EventSink`` protocol: a ``sink_name`` property
and an ``accept(envelope)`` method.  The router builds one ``EventData``
envelope per admitted notification and calls ``accept`` with it once.

Delivery is fire-and-forget: a sink reports its own failures (an error
log) and returns.  It must not raise into the router.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from eventrouter.models.envelopes import EventData


class DestinationDeliveryFailure(RuntimeError):
    """A sink failed to deliver an envelope (network, serialization, quota)."""


@runtime_checkable
class EventSink(Protocol):
    """Protocol that every eventrouter sink must implement.

    Attributes
    ----------
    sink_name : str
        Human-readable identifier for this sink instance
        (e.g. ``"stdout"``, ``"kafka"``).
    """

    @property
    def sink_name(self) -> str:
        """Return the name of this sink."""
        ...

    def accept(self, envelope: EventData) -> None:
        """Deliver one change.

        Parameters
        ----------
        envelope:
            The verb plus the current record and, for updates, the
            previous one.
        """
        ...
