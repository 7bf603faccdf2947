"""Position cursor — the last admitted resourceVersion and its admission test.

The cursor holds a single opaque position token.  A notification is only
forwarded when its token is strictly newer than the cursor; equal or older
tokens are replays (informer resyncs, watch restarts) and are dropped.

Ordering policy
---------------
Tokens are opaque strings, so the comparison must be chosen explicitly:

* ``TokenOrdering.NUMERIC`` parses both tokens as unsigned decimal
  integers.  This is correct for etcd-backed resourceVersions, whose
  lengths grow over time (``"999"`` < ``"1000"``).
* ``TokenOrdering.LEXICAL`` compares raw strings.  Only correct when the
  source guarantees fixed-width tokens.

Admission is side-effect-free.  ``advance`` is the only mutation, and the
router wraps admit -> deliver -> advance in ``guard()`` so concurrent
dispatch cannot deliver the same token twice.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum

logger = logging.getLogger(__name__)


class CursorRegressionError(ValueError):
    """Raised when ``advance`` would move the cursor backward or sideways."""


class TokenOrdering(str, Enum):
    """How two position tokens are compared."""

    NUMERIC = "numeric"
    LEXICAL = "lexical"


def _is_numeric(token: str) -> bool:
    return token.isascii() and token.isdigit()


class PositionCursor:
    """Holds the last admitted position token.

    Parameters
    ----------
    initial:
        Token to resume from (e.g. loaded from a checkpoint).  Empty means
        unset: the first non-empty token is always admitted.
    ordering:
        The comparison policy, see :class:`TokenOrdering`.

    Examples
    --------
    >>> cursor = PositionCursor("100")
    >>> cursor.admit("99"), cursor.admit("100"), cursor.admit("101")
    (False, False, True)
    """

    def __init__(
        self,
        initial: str = "",
        ordering: TokenOrdering = TokenOrdering.NUMERIC,
    ) -> None:
        self._ordering = TokenOrdering(ordering)
        if initial and self._ordering is TokenOrdering.NUMERIC and not _is_numeric(initial):
            raise ValueError(
                f"Initial position {initial!r} is not numeric; "
                "use TokenOrdering.LEXICAL for non-numeric tokens"
            )
        self._token = initial
        self._lock = threading.RLock()

    @property
    def token(self) -> str:
        """The current cursor value (``""`` when unset)."""
        with self._lock:
            return self._token

    @property
    def ordering(self) -> TokenOrdering:
        return self._ordering

    @contextmanager
    def guard(self) -> Iterator[PositionCursor]:
        """Hold the cursor lock across a test-then-advance sequence."""
        with self._lock:
            yield self

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    def is_newer(self, candidate: str, current: str) -> bool:
        """Return ``True`` if *candidate* orders strictly after *current*."""
        if self._ordering is TokenOrdering.NUMERIC:
            return int(candidate) > int(current)
        return candidate > current

    def admit(self, candidate: str) -> bool:
        """Decide whether a notification carrying *candidate* is new.

        Never mutates the cursor.
        """
        if not candidate:
            return False

        if self._ordering is TokenOrdering.NUMERIC and not _is_numeric(candidate):
            logger.warning(
                "Rejecting non-numeric position token %r under numeric ordering",
                candidate,
            )
            return False

        with self._lock:
            if not self._token:
                return True
            return self.is_newer(candidate, self._token)

    def advance(self, token: str) -> None:
        """Move the cursor to *token*.

        Raises
        ------
        CursorRegressionError
            If *token* would not be admitted, i.e. advancing would move the
            cursor backward, sideways, or to an empty value.
        """
        with self._lock:
            if not self.admit(token):
                raise CursorRegressionError(
                    f"Cannot advance cursor from {self._token!r} to {token!r}"
                )
            self._token = token
