"""Eventrouter: forward Kubernetes Events to pluggable sinks.

Watches the Events API, admits each change whose resourceVersion is newer
than the last one forwarded, hands a normalized ``EventData`` envelope to
the configured sink, checkpoints the position, and counts deliveries in
Prometheus.
"""

__version__ = "0.5.0"

from eventrouter.core.router import EventRouter, MalformedNotification
from eventrouter.models.envelopes import EventData
from eventrouter.models.events import Event

__all__ = ["EventRouter", "MalformedNotification", "EventData", "Event", "__version__"]
