"""HTTP sink — POSTs each envelope as JSON to a collector endpoint."""

from __future__ import annotations

import logging

import httpx

from eventrouter.models.envelopes import EventData
from eventrouter.routing.sinks._formatting import envelope_json_bytes

logger = logging.getLogger(__name__)


class HttpSink:
    """Posts envelopes to ``endpoint`` with ``Content-Type: application/json``.

    Non-2xx responses and transport errors are logged; the envelope is
    dropped.  Retrying is left to the receiving service or a proxy.

    Parameters
    ----------
    endpoint:
        Full URL to POST to.
    timeout:
        Request timeout in seconds.
    client:
        Pre-built ``httpx.Client`` (tests pass one with a mock transport).
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        if not endpoint:
            raise ValueError("HttpSink requires an endpoint URL")
        self.endpoint = endpoint
        self._client = client or httpx.Client(timeout=timeout)

    @property
    def sink_name(self) -> str:
        return "http"

    def accept(self, envelope: EventData) -> None:
        body = envelope_json_bytes(envelope)
        try:
            response = self._client.post(
                self.endpoint,
                content=body,
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "HttpSink: %s rejected event %s with status %d",
                self.endpoint,
                envelope.event.metadata.name,
                exc.response.status_code,
            )
        except httpx.HTTPError as exc:
            logger.error("HttpSink: failed to post to %s: %s", self.endpoint, exc)

    def close(self) -> None:
        self._client.close()
