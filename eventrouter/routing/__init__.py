"""Eventrouter destinations — where admitted changes are delivered.

Sinks are pluggable targets: stdout, the log, local JSON-lines files,
HTTP collectors, Kafka, S3, or Azure Event Hubs, or any custom sink
implementing the ``EventSink`` protocol.  The registry resolves the
configured sink key once at startup; several keys yield a FanoutSink.
"""
