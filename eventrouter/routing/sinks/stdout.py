"""Stdout sink — prints one JSON envelope per line.

When ``namespace`` is set the envelope is nested under that key, e.g.
``{"kubernetes": {"verb": "ADDED", "event": {...}}}``, which lets log
shippers route eventrouter output to its own index.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import TextIO

from eventrouter.models.envelopes import EventData
from eventrouter.routing.sinks._formatting import envelope_dict

logger = logging.getLogger(__name__)


class StdoutSink:
    """Writes envelopes as JSON lines to a text stream.

    Parameters
    ----------
    namespace:
        Optional wrapper key for each JSON object.
    stream:
        Destination stream.  Defaults to ``sys.stdout`` at write time, so
        redirection after construction is honored.
    """

    def __init__(self, namespace: str = "", stream: TextIO | None = None) -> None:
        self.namespace = namespace
        self._stream = stream

    @property
    def sink_name(self) -> str:
        return "stdout"

    def accept(self, envelope: EventData) -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        try:
            line = json.dumps(envelope_dict(envelope, self.namespace))
            stream.write(line + "\n")
            stream.flush()
        except (TypeError, ValueError, OSError) as exc:
            logger.error("StdoutSink: failed to write event: %s", exc)
