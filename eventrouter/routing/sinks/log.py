"""Log sink — emits each envelope as a structured log record."""

from __future__ import annotations

import json
import logging

from eventrouter.models.envelopes import EventData
from eventrouter.routing.sinks._formatting import envelope_dict

logger = logging.getLogger(__name__)


class LogSink:
    """Writes envelopes through :mod:`logging`.

    The JSON envelope is the message; the verb, namespace, and reason are
    attached as ``extra`` fields for structured handlers.
    """

    def __init__(self, level: int = logging.INFO, log: logging.Logger | None = None) -> None:
        self._level = level
        self._log = log or logger

    @property
    def sink_name(self) -> str:
        return "log"

    def accept(self, envelope: EventData) -> None:
        try:
            data = envelope_dict(envelope)
            self._log.log(
                self._level,
                "%s",
                json.dumps(data, sort_keys=True),
                extra={
                    "verb": data["verb"],
                    "event_namespace": envelope.event.metadata.namespace,
                    "event_reason": envelope.event.reason,
                },
            )
        except (TypeError, ValueError) as exc:
            logger.error("LogSink: failed to serialize event: %s", exc)
