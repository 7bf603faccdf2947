"""Sink registry — maps a configuration key to a sink constructor.

The sink is resolved once at startup.  ``sink = "stdout"`` builds a single
sink; ``sink = "stdout,kafka"`` builds a :class:`FanoutSink` of both.
Unknown or empty keys fall back to ``stdout`` with a warning.

Third-party sinks can be added with :func:`register_sink` before
:func:`manufacture_sink` is called.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from eventrouter.config import RouterConfig, StartupConfigurationError
from eventrouter.routing.dispatcher import FanoutSink
from eventrouter.routing.sinks import EventSink

logger = logging.getLogger(__name__)

SinkFactory = Callable[[RouterConfig], EventSink]

DEFAULT_SINK = "stdout"


def _stdout(config: RouterConfig) -> EventSink:
    from eventrouter.routing.sinks.stdout import StdoutSink

    return StdoutSink(namespace=config.stdout_json_namespace)


def _log(config: RouterConfig) -> EventSink:
    from eventrouter.routing.sinks.log import LogSink

    return LogSink()


def _local_file(config: RouterConfig) -> EventSink:
    from eventrouter.routing.sinks.local_file import LocalFileSink

    return LocalFileSink(config.local_file_path)


def _http(config: RouterConfig) -> EventSink:
    from eventrouter.routing.sinks.http import HttpSink

    return HttpSink(config.http_endpoint, timeout=config.http_timeout)


def _kafka(config: RouterConfig) -> EventSink:
    from eventrouter.routing.sinks.kafka import KafkaSink

    return KafkaSink(config.kafka_brokers, config.kafka_topic)


def _s3(config: RouterConfig) -> EventSink:
    from eventrouter.routing.sinks.s3 import S3Sink

    return S3Sink(
        config.s3_bucket,
        prefix=config.s3_prefix,
        region=config.s3_region,
        batch_size=config.s3_batch_size,
    )


def _eventhub(config: RouterConfig) -> EventSink:
    from eventrouter.routing.sinks.eventhub import EventHubSink

    return EventHubSink(config.eventhub_connection_string, config.eventhub_name)


SINK_REGISTRY: dict[str, SinkFactory] = {
    "stdout": _stdout,
    "glog": _log,
    "log": _log,
    "local_file": _local_file,
    "http": _http,
    "kafka": _kafka,
    "s3": _s3,
    "eventhub": _eventhub,
}


def register_sink(key: str, factory: SinkFactory) -> None:
    """Register (or replace) the factory for *key*."""
    SINK_REGISTRY[key.lower()] = factory


def build_sink(key: str, config: RouterConfig) -> EventSink:
    """Construct the sink registered under *key*."""
    factory = SINK_REGISTRY.get(key)
    if factory is None:
        logger.warning("Unknown sink %r, falling back to %s", key, DEFAULT_SINK)
        key, factory = DEFAULT_SINK, SINK_REGISTRY[DEFAULT_SINK]
    try:
        sink = factory(config)
    except Exception as exc:
        raise StartupConfigurationError(f"failed to create {key} sink: {exc}") from exc
    logger.info("Created %s sink", sink.sink_name)
    return sink


def manufacture_sink(config: RouterConfig) -> EventSink:
    """Resolve ``config.sink`` into one concrete sink instance.

    Raises
    ------
    StartupConfigurationError
        If a sink constructor fails.
    """
    keys = config.sink_keys or [DEFAULT_SINK]
    if len(keys) == 1:
        return build_sink(keys[0], config)
    return FanoutSink([build_sink(key, config) for key in keys])
