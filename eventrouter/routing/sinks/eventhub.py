"""Azure Event Hubs sink: sends each envelope as one Event Hubs ``EventData``."""

from __future__ import annotations

import logging
from typing import Any

from azure.eventhub import EventData as HubEventData
from azure.eventhub import EventHubProducerClient
from azure.eventhub.exceptions import EventHubError

from eventrouter.models.envelopes import EventData
from eventrouter.routing.sinks._formatting import envelope_json_bytes, partition_key

logger = logging.getLogger(__name__)


class EventHubSink:
    """Publishes envelopes to an Event Hub.

    Parameters
    ----------
    connection_string:
        Namespace connection string.
    eventhub_name:
        Target Event Hub (entity) name.
    producer:
        Pre-built producer client (tests pass a mock).
    """

    def __init__(
        self,
        connection_string: str,
        eventhub_name: str,
        producer: Any | None = None,
    ) -> None:
        if producer is None:
            if not connection_string:
                raise ValueError("EventHubSink requires a connection string")
            producer = EventHubProducerClient.from_connection_string(
                conn_str=connection_string,
                eventhub_name=eventhub_name,
            )
        self.eventhub_name = eventhub_name
        self._producer = producer

    @property
    def sink_name(self) -> str:
        return "eventhub"

    def accept(self, envelope: EventData) -> None:
        event_data = HubEventData(envelope_json_bytes(envelope))
        event_data.properties = {
            "reason": envelope.event.reason,
            "type": envelope.event.type,
        }
        try:
            self._producer.send_batch(
                [event_data], partition_key=partition_key(envelope.event)
            )
        except EventHubError as exc:
            logger.error(
                "EventHubSink: failed to send to %s: %s", self.eventhub_name, exc
            )

    def close(self) -> None:
        self._producer.close()
