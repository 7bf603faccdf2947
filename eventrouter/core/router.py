"""EventRouter — the change router between the watch and the sink.

For every Create/Update notification the router:

1. validates the payload shape (``MalformedNotification`` otherwise),
2. applies the position cursor's admission test to the new record's
   resourceVersion (replays are dropped silently),
3. builds an ``EventData`` envelope and hands it to the sink once,
4. advances the cursor and reports the token to the checkpoint callback,
5. records delivery counters when metrics are enabled.

Steps 2-4 run under the cursor guard, so concurrent dispatch cannot
deliver the same position twice or checkpoint out of order.

Deletions are never forwarded and never move the cursor: downstream
stores keep the historical record, so a delete is only logged.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from collections.abc import Callable, Mapping
from typing import Any, Protocol

from pydantic import ValidationError

from eventrouter.core.metrics import DeliveryMetrics
from eventrouter.core.position import PositionCursor, TokenOrdering
from eventrouter.models.envelopes import EventData
from eventrouter.models.events import Event
from eventrouter.routing.sinks import DestinationDeliveryFailure, EventSink

logger = logging.getLogger(__name__)

CheckpointFn = Callable[[str], None]


class MalformedNotification(ValueError):
    """A notification payload is absent or not an Event record."""


class NotificationSource(Protocol):
    """Anything that feeds the router's three callbacks until stopped."""

    def run(
        self,
        on_create: Callable[[Any], None],
        on_update: Callable[[Any, Any], None],
        on_delete: Callable[[Any], None],
        stop: threading.Event,
    ) -> None: ...


def _no_checkpoint(token: str) -> None:
    pass


class EventRouter:
    """Routes admitted Event changes to a single sink.

    Parameters
    ----------
    sink:
        The destination, resolved once at startup.
    last_seen:
        Position token to resume from (``""`` admits everything).
    checkpoint:
        Called with each advanced token; the caller persists it.
    metrics:
        Delivery counters, or ``None`` to disable metrics.
    ordering:
        Token comparison policy for the cursor.
    """

    def __init__(
        self,
        sink: EventSink,
        last_seen: str = "",
        checkpoint: CheckpointFn | None = None,
        metrics: DeliveryMetrics | None = None,
        ordering: TokenOrdering = TokenOrdering.NUMERIC,
    ) -> None:
        self.sink = sink
        self.cursor = PositionCursor(last_seen, ordering)
        self.metrics = metrics
        self._checkpoint = checkpoint or _no_checkpoint
        self._stats: Counter[str] = Counter()
        self._stats_lock = threading.Lock()

    @property
    def stats(self) -> dict[str, int]:
        """Snapshot of delivered / dropped / malformed / deleted counts."""
        with self._stats_lock:
            return dict(self._stats)

    def _count(self, key: str) -> None:
        with self._stats_lock:
            self._stats[key] += 1

    # ------------------------------------------------------------------
    # Notification callbacks
    # ------------------------------------------------------------------

    def on_create(self, obj: Any) -> None:
        """Handle a Create notification."""
        try:
            event = self._coerce(obj, "new")
        except MalformedNotification as exc:
            self._reject("create", exc)
            return
        self._route(event, None)

    def on_update(self, old_obj: Any, new_obj: Any) -> None:
        """Handle an Update notification.  Admission uses the new record."""
        try:
            new_event = self._coerce(new_obj, "new")
            old_event = None if old_obj is None else self._coerce(old_obj, "old")
        except MalformedNotification as exc:
            self._reject("update", exc)
            return
        self._route(new_event, old_event)

    def on_delete(self, obj: Any) -> None:
        """Log a deletion.  Never forwarded, never advances the cursor."""
        self._count("deleted")
        try:
            event = self._coerce(obj, "deleted")
        except MalformedNotification as exc:
            logger.warning("Ignoring malformed delete notification: %s", exc)
            return
        logger.info(
            "Event deleted from the system: namespace=%s name=%s reason=%s",
            event.metadata.namespace,
            event.metadata.name,
            event.reason,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self, source: NotificationSource, stop: threading.Event) -> None:
        """Drive *source* with this router's callbacks until *stop* is set.

        An in-flight delivery is allowed to finish; nothing is interrupted.
        """
        logger.info(
            "Starting event router (sink=%s, position=%s)",
            self.sink.sink_name,
            self.cursor.token or "<unset>",
        )
        try:
            source.run(self.on_create, self.on_update, self.on_delete, stop)
        finally:
            logger.info(
                "Shutting down event router (position=%s, stats=%s)",
                self.cursor.token or "<unset>",
                self.stats,
            )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _coerce(payload: Any, role: str) -> Event:
        if payload is None:
            raise MalformedNotification(f"{role} event is absent")
        if isinstance(payload, Event):
            return payload
        if isinstance(payload, Mapping):
            try:
                return Event.model_validate(payload)
            except ValidationError as exc:
                raise MalformedNotification(
                    f"{role} event failed validation: {exc.error_count()} error(s)"
                ) from exc
        raise MalformedNotification(
            f"{role} payload is not an Event: {type(payload).__name__}"
        )

    def _reject(self, kind: str, exc: MalformedNotification) -> None:
        self._count("malformed")
        logger.error("Dropping malformed %s notification: %s", kind, exc)

    def _route(self, new_event: Event, old_event: Event | None) -> bool:
        token = new_event.position_token
        with self.cursor.guard():
            if not self.cursor.admit(token):
                self._count("dropped")
                logger.debug(
                    "Skipping event %s at position %r (cursor %r)",
                    new_event.metadata.name,
                    token,
                    self.cursor.token,
                )
                return False

            envelope = EventData.build(new_event, old_event)
            self._deliver(envelope)
            self.cursor.advance(token)
            self._save_position(token)

        self._count("delivered")
        if self.metrics is not None:
            self.metrics.record(new_event)
        return True

    def _deliver(self, envelope: EventData) -> None:
        logger.debug(
            "Delivering %s %s to %s",
            envelope.verb.value,
            envelope.event.metadata.name,
            self.sink.sink_name,
        )
        try:
            self.sink.accept(envelope)
        except Exception as exc:  # noqa: BLE001
            failure = DestinationDeliveryFailure(
                f"sink {self.sink.sink_name} raised for event "
                f"{envelope.event.metadata.name}: {exc}"
            )
            logger.error("%s", failure)

    def _save_position(self, token: str) -> None:
        try:
            self._checkpoint(token)
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to checkpoint position %s: %s", token, exc)
