"""Router configuration — env-driven, with an optional JSON config file.

Settings come from, in order of precedence:

1. A JSON config file: the path given to ``load_config``, else the
   ``EVENTROUTER_CONFIG`` environment variable (a *forced* file that must
   exist), else ``./config.json`` or ``/etc/eventrouter/config.json`` when
   present.
2. ``EVENTROUTER_*`` environment variables or a ``.env`` file.
3. The defaults below.

Config file keys may use dashes (``resync-interval``) or underscores.
Durations accept seconds, ISO 8601, or Go-style strings such as ``"5m"``
or ``"1h30m"``.
"""

from __future__ import annotations

import json
import logging
import os
import re
from datetime import timedelta
from pathlib import Path
from typing import Any

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from eventrouter.core.position import TokenOrdering

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "EVENTROUTER_CONFIG"
DEFAULT_CONFIG_PATHS = (
    Path("config.json"),
    Path("/etc/eventrouter/config.json"),
)

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600}


class StartupConfigurationError(RuntimeError):
    """Configuration, sink, or client construction failed at startup."""


def parse_go_duration(value: str) -> timedelta | None:
    """Parse ``"5m"``, ``"30s"``, ``"1h30m"``; return ``None`` if not that form.

    Examples
    --------
    >>> parse_go_duration("1h30m")
    datetime.timedelta(seconds=5400)
    >>> parse_go_duration("PT5M") is None
    True
    """
    parts = _DURATION_PART.findall(value)
    if not parts or "".join(n + u for n, u in parts) != value:
        return None
    return timedelta(seconds=sum(float(n) * _DURATION_UNITS[u] for n, u in parts))


class RouterConfig(BaseSettings):
    """Eventrouter settings.

    Examples
    --------
    Override via environment::

        export EVENTROUTER_SINK=kafka
        export EVENTROUTER_KAFKA_BROKERS=kafka-0:9092,kafka-1:9092
        export EVENTROUTER_KAFKA_TOPIC=k8s-events
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="EVENTROUTER_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime
    sink: str = "stdout"
    log_level: str = "INFO"
    kubeconfig: str = ""
    namespace: str = ""  # empty watches all namespaces
    resync_interval: timedelta = timedelta(minutes=30)

    # Position tracking
    position_ordering: TokenOrdering = TokenOrdering.NUMERIC
    checkpoint_path: Path | None = None

    # Metrics
    enable_prometheus: bool = True
    metrics_port: int = 8080

    # Sink settings
    stdout_json_namespace: str = ""
    local_file_path: Path = Path(".eventrouter/events")
    http_endpoint: str = ""
    http_timeout: float = 10.0
    kafka_brokers: str = "localhost:9092"
    kafka_topic: str = "eventrouter"
    s3_bucket: str = ""
    s3_prefix: str = "eventrouter/"
    s3_region: str | None = None
    s3_batch_size: int = 100
    eventhub_connection_string: str = ""
    eventhub_name: str = ""

    @field_validator("resync_interval", mode="before")
    @classmethod
    def _parse_duration(cls, value: Any) -> Any:
        if isinstance(value, str):
            parsed = parse_go_duration(value.strip())
            if parsed is not None:
                return parsed
        return value

    @property
    def sink_keys(self) -> list[str]:
        """The configured sink keys, lower-cased, in order."""
        return [k.strip().lower() for k in self.sink.split(",") if k.strip()]


def _normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    return {key.replace("-", "_").lower(): value for key, value in data.items()}


def read_config_file(path: Path, forced: bool = False) -> dict[str, Any]:
    """Read a JSON config file into a dict of normalized keys."""
    label = "forced config file" if forced else "config file"
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise StartupConfigurationError(f"failed to read {label} {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise StartupConfigurationError(
            f"failed to read {label} {path}: expected a JSON object"
        )
    return _normalize_keys(data)


def load_config(path: Path | str | None = None) -> RouterConfig:
    """Build the effective :class:`RouterConfig`.

    Raises
    ------
    StartupConfigurationError
        If a forced config file is missing or invalid, or a value fails
        validation.
    """
    forced = path or os.environ.get(CONFIG_ENV_VAR)
    data: dict[str, Any] = {}
    if forced:
        data = read_config_file(Path(forced), forced=True)
        logger.info("Loaded config file %s", forced)
    else:
        for candidate in DEFAULT_CONFIG_PATHS:
            if candidate.is_file():
                data = read_config_file(candidate)
                logger.info("Loaded config file %s", candidate)
                break

    try:
        return RouterConfig(**data)
    except ValidationError as exc:
        raise StartupConfigurationError(f"invalid configuration: {exc}") from exc
