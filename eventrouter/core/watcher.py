"""Kubernetes Event watcher — turns list+watch into router callbacks.

``EventWatcher`` lists the current Events, replays them as creations, and
then follows the watch stream from the list's resourceVersion:

- ``ADDED``    -> ``on_create(obj)``
- ``MODIFIED`` -> ``on_update(cached_old, obj)``
- ``DELETED``  -> ``on_delete(obj)``

A small cache keyed by Event uid supplies the old record for updates.
Every ``resync_interval`` (and whenever the watch expires with ``410
Gone``) the watcher relists: known Events are replayed as updates, new
ones as creations, vanished ones as deletions.  The router's cursor drops
the replays whose resourceVersion it has already seen.

Objects are handed over as Kubernetes JSON dicts.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from datetime import timedelta
from typing import Any

from kubernetes import client, config, watch
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from eventrouter.config import StartupConfigurationError

logger = logging.getLogger(__name__)

GONE = 410


def load_core_api(kubeconfig: str = "") -> client.CoreV1Api:
    """Build a CoreV1Api from in-cluster config, falling back to kubeconfig.

    Raises
    ------
    StartupConfigurationError
        If no usable cluster configuration is found.
    """
    try:
        if kubeconfig:
            config.load_kube_config(config_file=kubeconfig)
        else:
            try:
                config.load_incluster_config()
            except config.ConfigException:
                config.load_kube_config()
    except (config.ConfigException, OSError) as exc:
        raise StartupConfigurationError(
            f"failed to build kubernetes config: {exc}"
        ) from exc
    return client.CoreV1Api()


def _rv_sort_key(obj: dict[str, Any]) -> tuple[int, str]:
    rv = obj.get("metadata", {}).get("resourceVersion") or ""
    return (len(rv), rv)


class EventWatcher:
    """Feeds a router from the Kubernetes Events API.

    Parameters
    ----------
    core_api:
        A ``CoreV1Api`` (or anything with the same list methods and an
        ``api_client``).
    namespace:
        Namespace to watch; empty watches all namespaces.
    resync_interval:
        How often to relist.  ``None`` or zero disables resync.
    timeout_seconds:
        Server-side watch timeout; bounds how long a stop request waits.
    retry_delay:
        Seconds to wait after an unexpected API error.
    """

    def __init__(
        self,
        core_api: Any,
        namespace: str = "",
        resync_interval: timedelta | None = None,
        timeout_seconds: int = 30,
        retry_delay: float = 5.0,
        watch_factory: Callable[[], Any] = watch.Watch,
    ) -> None:
        self._api = core_api
        self.namespace = namespace
        self.resync_interval = resync_interval
        self.timeout_seconds = timeout_seconds
        self.retry_delay = retry_delay
        self._watch_factory = watch_factory
        self._cache: dict[str, dict[str, Any]] = {}
        self._active_watch: Any = None

    # ------------------------------------------------------------------
    # API helpers
    # ------------------------------------------------------------------

    def _list_fn(self) -> Callable[..., Any]:
        if self.namespace:
            return self._api.list_namespaced_event
        return self._api.list_event_for_all_namespaces

    def _list_kwargs(self) -> dict[str, Any]:
        return {"namespace": self.namespace} if self.namespace else {}

    def _to_dict(self, obj: Any) -> dict[str, Any]:
        if isinstance(obj, dict):
            return obj
        return self._api.api_client.sanitize_for_serialization(obj)

    @staticmethod
    def _uid(obj: dict[str, Any]) -> str:
        meta = obj.get("metadata", {})
        return meta.get("uid") or f"{meta.get('namespace', '')}/{meta.get('name', '')}"

    # ------------------------------------------------------------------
    # List / relist
    # ------------------------------------------------------------------

    def relist(
        self,
        on_create: Callable[[Any], None],
        on_update: Callable[[Any, Any], None],
        on_delete: Callable[[Any], None],
    ) -> str:
        """List all Events, reconcile the cache, return the list's resourceVersion."""
        response = self._list_fn()(**self._list_kwargs())
        items = sorted((self._to_dict(i) for i in response.items), key=_rv_sort_key)
        seen: set[str] = set()

        for obj in items:
            uid = self._uid(obj)
            seen.add(uid)
            cached = self._cache.get(uid)
            self._cache[uid] = obj
            if cached is None:
                on_create(obj)
            else:
                on_update(cached, obj)

        for uid in set(self._cache) - seen:
            on_delete(self._cache.pop(uid))

        resource_version = response.metadata.resource_version or ""
        logger.info("Listed %d events at resourceVersion %s", len(items), resource_version)
        return resource_version

    # ------------------------------------------------------------------
    # Watch loop
    # ------------------------------------------------------------------

    def dispatch(
        self,
        event_type: str,
        obj: dict[str, Any],
        on_create: Callable[[Any], None],
        on_update: Callable[[Any, Any], None],
        on_delete: Callable[[Any], None],
    ) -> None:
        """Route one watch event to the matching callback."""
        uid = self._uid(obj)
        if event_type == "ADDED":
            self._cache[uid] = obj
            on_create(obj)
        elif event_type == "MODIFIED":
            old = self._cache.get(uid)
            self._cache[uid] = obj
            on_update(old, obj)
        elif event_type == "DELETED":
            self._cache.pop(uid, None)
            on_delete(obj)
        else:
            logger.debug("Ignoring watch event of type %s", event_type)

    def run(
        self,
        on_create: Callable[[Any], None],
        on_update: Callable[[Any, Any], None],
        on_delete: Callable[[Any], None],
        stop: threading.Event,
    ) -> None:
        """List, then watch until *stop* is set.

        API and connection failures (during a list or a watch) are logged
        and retried after ``retry_delay``; they never end the loop.
        """
        resource_version = ""
        last_sync = 0.0
        needs_list = True

        while not stop.is_set():
            try:
                if needs_list or self._resync_due(last_sync):
                    resource_version = self.relist(on_create, on_update, on_delete)
                    last_sync = time.monotonic()
                    needs_list = False

                w = self._watch_factory()
                self._active_watch = w
                for item in w.stream(
                    self._list_fn(),
                    resource_version=resource_version,
                    timeout_seconds=self.timeout_seconds,
                    **self._list_kwargs(),
                ):
                    obj = self._to_dict(item["object"])
                    resource_version = (
                        obj.get("metadata", {}).get("resourceVersion") or resource_version
                    )
                    self.dispatch(item["type"], obj, on_create, on_update, on_delete)
                    if stop.is_set() or self._resync_due(last_sync):
                        w.stop()
                        break
            except ApiException as exc:
                if exc.status == GONE:
                    logger.info("Watch expired at %s, relisting", resource_version)
                    needs_list = True
                else:
                    logger.error("Event API request failed: %s", exc)
                    stop.wait(self.retry_delay)
            except (HTTPError, OSError) as exc:
                logger.error("Event API connection failed: %s", exc)
                stop.wait(self.retry_delay)
            finally:
                self._active_watch = None

        logger.info("Event watcher stopped")

    def stop(self) -> None:
        """Ask the active watch stream to end after its current item."""
        if self._active_watch is not None:
            self._active_watch.stop()

    def _resync_due(self, last_sync: float) -> bool:
        if not self.resync_interval:
            return False
        return time.monotonic() - last_sync >= self.resync_interval.total_seconds()
