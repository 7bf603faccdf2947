"""File-backed checkpoint for the router's position cursor.

The router reports every advanced position token through a callback;
``FileCheckpoint.save`` is that callback in a deployed process, and
``FileCheckpoint.load`` seeds the cursor on restart.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path

logger = logging.getLogger(__name__)


class FileCheckpoint:
    """Persists a single position token to a text file.

    Writes go to a temp file in the same directory and are moved into
    place with ``os.replace``, so a crash never leaves a torn token.

    Parameters
    ----------
    path:
        File holding the token.  Parent directories are created on save.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def load(self) -> str:
        """Return the stored token, or ``""`` when nothing was saved yet."""
        try:
            token = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return ""
        logger.info("Resuming from position %s (%s)", token or "<unset>", self.path)
        return token

    def save(self, token: str) -> None:
        """Atomically replace the stored token."""
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(token)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise

    __call__ = save
