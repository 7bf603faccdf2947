"""S3 sink — buffers envelopes and uploads them as JSON-lines objects.

Each upload writes one object under
``{prefix}{YYYY}/{MM}/{DD}/{HHMMSS}-{uuid}.jsonl`` containing up to
``batch_size`` envelopes.  The buffer is flushed when full and on close.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from eventrouter.models.envelopes import EventData
from eventrouter.routing.sinks._formatting import envelope_json_bytes

logger = logging.getLogger(__name__)


class S3Sink:
    """Appends envelopes to an S3 bucket in batches.

    Parameters
    ----------
    bucket:
        Destination bucket.
    prefix:
        Key prefix, e.g. ``"eventrouter/"``.
    region:
        AWS region for the client.
    batch_size:
        Number of envelopes per uploaded object.
    client:
        Pre-built S3 client (tests pass a mock).
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        region: str | None = None,
        batch_size: int = 100,
        client: Any | None = None,
    ) -> None:
        if not bucket:
            raise ValueError("S3Sink requires a bucket")
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.bucket = bucket
        self.prefix = prefix
        self.batch_size = batch_size
        self._s3 = client or boto3.client("s3", region_name=region)
        self._buffer: list[bytes] = []
        self._lock = threading.Lock()

    @property
    def sink_name(self) -> str:
        return "s3"

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._buffer)

    def accept(self, envelope: EventData) -> None:
        line = envelope_json_bytes(envelope)
        with self._lock:
            self._buffer.append(line)
            if len(self._buffer) < self.batch_size:
                return
            batch, self._buffer = self._buffer, []
        self._upload(batch)

    def flush(self) -> None:
        """Upload whatever is buffered."""
        with self._lock:
            batch, self._buffer = self._buffer, []
        if batch:
            self._upload(batch)

    def close(self) -> None:
        self.flush()

    def object_key(self, now: datetime | None = None) -> str:
        now = now or datetime.now(timezone.utc)
        return (
            f"{self.prefix}{now:%Y/%m/%d}/"
            f"{now:%H%M%S}-{uuid.uuid4().hex[:12]}.jsonl"
        )

    def _upload(self, batch: list[bytes]) -> None:
        key = self.object_key()
        try:
            self._s3.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=b"\n".join(batch) + b"\n",
                ContentType="application/x-ndjson",
            )
            logger.debug("S3Sink: uploaded %d events to s3://%s/%s", len(batch), self.bucket, key)
        except (BotoCoreError, ClientError) as exc:
            logger.error(
                "S3Sink: failed to upload %d events to s3://%s/%s: %s",
                len(batch),
                self.bucket,
                key,
                exc,
            )
