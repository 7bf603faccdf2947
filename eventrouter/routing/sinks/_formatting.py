"""Shared serialization helpers for eventrouter sinks.

Keeps the envelope-to-bytes patterns used by the stdout, HTTP, Kafka,
S3, and Event Hubs sinks in one place.
"""

from __future__ import annotations

import json
from typing import Any

from eventrouter.models.envelopes import EventData
from eventrouter.models.events import Event


def envelope_dict(envelope: EventData, namespace: str = "") -> dict[str, Any]:
    """Return the envelope dict, optionally nested under a *namespace* key.

    Examples
    --------
    >>> ev = Event.model_validate({"metadata": {"name": "e1"}})
    >>> sorted(envelope_dict(EventData.build(ev)))
    ['event', 'verb']
    >>> list(envelope_dict(EventData.build(ev), namespace="kubernetes"))
    ['kubernetes']
    """
    data = envelope.to_dict()
    if namespace:
        return {namespace: data}
    return data


def envelope_json_bytes(envelope: EventData, namespace: str = "") -> bytes:
    """Serialize the (optionally namespaced) envelope to compact JSON bytes."""
    if not namespace:
        return envelope.to_json_bytes()
    return json.dumps(
        envelope_dict(envelope, namespace),
        sort_keys=True,
        separators=(",", ":"),
    ).encode("utf-8")


def partition_key(event: Event) -> str:
    """Return a stable per-record key for partitioned destinations.

    Uses the involved object's uid so all events about one object land in
    the same partition; falls back to ``namespace/name`` of the Event.
    """
    if event.involved_object.uid:
        return event.involved_object.uid
    return f"{event.metadata.namespace}/{event.metadata.name}"
