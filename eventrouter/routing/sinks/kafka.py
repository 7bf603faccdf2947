"""Kafka sink — publishes each envelope to a topic.

Messages are keyed by the involved object's uid so all events about one
object stay ordered within a partition.
"""

from __future__ import annotations

import logging
from typing import Any

from kafka import KafkaProducer
from kafka.errors import KafkaError

from eventrouter.models.envelopes import EventData
from eventrouter.routing.sinks._formatting import envelope_json_bytes, partition_key

logger = logging.getLogger(__name__)


class KafkaSink:
    """Sends envelopes to Kafka without waiting for acknowledgement.

    Delivery failures surface asynchronously through the producer's error
    callback and are logged there.

    Parameters
    ----------
    brokers:
        Comma separated ``host:port`` list.
    topic:
        Destination topic.
    producer:
        Pre-built producer (tests pass a mock).
    """

    def __init__(
        self,
        brokers: str,
        topic: str,
        producer: Any | None = None,
    ) -> None:
        if not topic:
            raise ValueError("KafkaSink requires a topic")
        self.topic = topic
        self._producer = producer or KafkaProducer(
            bootstrap_servers=[b.strip() for b in brokers.split(",") if b.strip()],
            key_serializer=lambda k: k.encode("utf-8"),
        )
        logger.info("Kafka sink initialized (topic: %s)", topic)

    @property
    def sink_name(self) -> str:
        return "kafka"

    def accept(self, envelope: EventData) -> None:
        try:
            future = self._producer.send(
                self.topic,
                key=partition_key(envelope.event),
                value=envelope_json_bytes(envelope),
            )
            future.add_errback(self._on_send_error, envelope.event.metadata.name)
        except KafkaError as exc:
            logger.error("KafkaSink: failed to send to %s: %s", self.topic, exc)

    def _on_send_error(self, event_name: str, exc: Exception) -> None:
        logger.error(
            "KafkaSink: delivery of %s to %s failed: %s", event_name, self.topic, exc
        )

    def close(self) -> None:
        """Flush pending messages and close the producer."""
        self._producer.flush()
        self._producer.close()
        logger.info("Kafka sink closed")
