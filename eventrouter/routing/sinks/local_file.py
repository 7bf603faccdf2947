"""Local file sink — appends envelopes to JSON-lines files.

Layout: {base_path}/{namespace}/events.jsonl

Events without a namespace (cluster-scoped objects) go under ``_cluster``.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

from eventrouter.models.envelopes import EventData
from eventrouter.models.events import Event
from eventrouter.routing.sinks._formatting import envelope_json_bytes

logger = logging.getLogger(__name__)


class LocalFileSink:
    """Appends envelopes to per-namespace JSON-lines files.

    Parameters
    ----------
    base_path:
        Root directory for event files.  Defaults to ``.eventrouter/events``.
    """

    FILE_NAME = "events.jsonl"

    def __init__(self, base_path: Path | str | None = None) -> None:
        self._base = Path(base_path) if base_path else Path(".eventrouter/events")
        self._base.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    @property
    def sink_name(self) -> str:
        return "local_file"

    def path_for(self, event: Event) -> Path:
        namespace = event.metadata.namespace or "_cluster"
        return self._base / namespace / self.FILE_NAME

    def accept(self, envelope: EventData) -> None:
        target_file = self.path_for(envelope.event)
        try:
            line = envelope_json_bytes(envelope) + b"\n"
            with self._lock:
                target_file.parent.mkdir(parents=True, exist_ok=True)
                with target_file.open("ab") as fh:
                    fh.write(line)
        except OSError as exc:
            logger.error("LocalFileSink: failed to append to %s: %s", target_file, exc)
            return

        logger.debug(
            "LocalFileSink: appended %s to %s", envelope.event.metadata.name, target_file
        )

    def read_events(self, namespace: str) -> list[dict]:
        """Read back every envelope stored for *namespace*."""
        path = self._base / (namespace or "_cluster") / self.FILE_NAME
        if not path.exists():
            return []
        return [json.loads(line) for line in path.read_text().splitlines() if line]
