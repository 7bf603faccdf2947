"""Destination-agnostic envelope handed to every sink.

An ``EventData`` envelope is built once per admitted change notification,
handed to exactly one sink call and then discarded.  Its JSON form is::

    {"verb": "ADDED" | "UPDATED", "event": {...}, "oldEvent": {...}}

``oldEvent`` is omitted when there is no previous record.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from eventrouter.models.events import Event


class EnvelopeValidationError(ValueError):
    """Raised when serialized envelope bytes cannot be decoded."""


class Verb(str, Enum):
    """What happened to the record."""

    ADDED = "ADDED"
    UPDATED = "UPDATED"


class EventData(BaseModel):
    """The normalized outbound unit: a verb, the new record, the old record."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    verb: Verb
    event: Event
    old_event: Event | None = Field(default=None, alias="oldEvent")

    @classmethod
    def build(cls, new_event: Event, old_event: Event | None = None) -> EventData:
        """Build an envelope; the verb is ``UPDATED`` iff *old_event* is given."""
        verb = Verb.UPDATED if old_event is not None else Verb.ADDED
        return cls(verb=verb, event=new_event, old_event=old_event)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-compatible dict, omitting ``oldEvent`` when absent."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json_bytes(self) -> bytes:
        """Serialize to compact, key-sorted UTF-8 JSON."""
        return json.dumps(
            self.to_dict(), sort_keys=True, separators=(",", ":"), ensure_ascii=True
        ).encode("utf-8")

    @classmethod
    def from_json(cls, raw_json: bytes | str) -> EventData:
        """Decode and validate a serialized envelope."""
        if isinstance(raw_json, bytes):
            raw_json = raw_json.decode("utf-8")

        try:
            data = json.loads(raw_json)
        except json.JSONDecodeError as exc:
            raise EnvelopeValidationError(f"Invalid JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise EnvelopeValidationError(
                f"Envelope must be a JSON object, got {type(data).__name__}"
            )

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise EnvelopeValidationError(
                f"Envelope validation failed: {exc}"
            ) from exc
