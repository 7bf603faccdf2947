"""Eventrouter data models — all Pydantic v2, all frozen (immutable)."""

from eventrouter.models.envelopes import (
    EnvelopeValidationError,
    EventData,
    Verb,
)
from eventrouter.models.events import Event, EventSource, ObjectMeta, ObjectReference

__all__ = [
    # events
    "Event",
    "EventSource",
    "ObjectMeta",
    "ObjectReference",
    # envelopes
    "EnvelopeValidationError",
    "EventData",
    "Verb",
]
