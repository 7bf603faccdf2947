"""Kubernetes Event records as seen by the router.

The models mirror the subset of the ``core/v1`` Event schema that the
router and its sinks care about.  Field names follow the Kubernetes JSON
(camelCase) on the wire; Python code uses the snake_case attribute names.
Unknown fields in incoming payloads are ignored.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

_K8S_MODEL_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
)


class ObjectMeta(BaseModel):
    """Identity of the Event object plus its position token."""

    model_config = _K8S_MODEL_CONFIG

    name: str = ""
    namespace: str = ""
    resource_version: str = ""  # opaque, source-assigned position token
    uid: str = ""


class ObjectReference(BaseModel):
    """The subject an Event is about (a Pod, a Node, a Deployment, ...)."""

    model_config = _K8S_MODEL_CONFIG

    kind: str = ""
    name: str = ""
    namespace: str = ""
    api_version: str = ""
    uid: str = ""


class EventSource(BaseModel):
    """The component and host that emitted the Event."""

    model_config = _K8S_MODEL_CONFIG

    component: str = ""
    host: str = ""


class Event(BaseModel):
    """A single Kubernetes Event record.

    Examples
    --------
    >>> ev = Event.model_validate(
    ...     {"metadata": {"name": "e1", "resourceVersion": "42"}, "type": "Normal"}
    ... )
    >>> ev.position_token
    '42'
    """

    model_config = _K8S_MODEL_CONFIG

    metadata: ObjectMeta = ObjectMeta()
    type: str = ""  # category: Normal, Warning, Info, ...
    reason: str = ""
    message: str = ""
    count: int = 0
    involved_object: ObjectReference = ObjectReference()
    source: EventSource = EventSource()
    first_timestamp: datetime | None = None
    last_timestamp: datetime | None = None

    @property
    def position_token(self) -> str:
        """The resourceVersion used for ordering and deduplication."""
        return self.metadata.resource_version

    def to_dict(self) -> dict:
        """Return the Kubernetes-shaped JSON dict for this record."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
