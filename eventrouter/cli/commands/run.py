"""``eventrouter run`` — watch Kubernetes Events and route them to the sink.

Wiring: config -> checkpoint -> sink -> metrics -> router -> watcher.
SIGINT/SIGTERM stop the watch; an in-flight delivery completes first.
"""

from __future__ import annotations

import logging
import signal
import threading
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from eventrouter.config import RouterConfig, StartupConfigurationError, load_config
from eventrouter.core.checkpoint import FileCheckpoint
from eventrouter.core.metrics import DeliveryMetrics
from eventrouter.core.router import EventRouter
from eventrouter.core.watcher import EventWatcher, load_core_api
from eventrouter.routing.registry import manufacture_sink

console = Console(stderr=True)
logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Send log records to stderr through Rich; stdout is left to the sink."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def build_router(config: RouterConfig) -> EventRouter:
    """Assemble an EventRouter from *config*.

    Raises
    ------
    StartupConfigurationError
        If the sink or the checkpoint cannot be set up.
    """
    last_seen = ""
    checkpoint = None
    if config.checkpoint_path is not None:
        store = FileCheckpoint(config.checkpoint_path)
        try:
            last_seen = store.load()
        except OSError as exc:
            raise StartupConfigurationError(
                f"failed to read checkpoint {config.checkpoint_path}: {exc}"
            ) from exc
        checkpoint = store.save

    sink = manufacture_sink(config)
    metrics = DeliveryMetrics() if config.enable_prometheus else None

    try:
        return EventRouter(
            sink,
            last_seen=last_seen,
            checkpoint=checkpoint,
            metrics=metrics,
            ordering=config.position_ordering,
        )
    except ValueError as exc:
        raise StartupConfigurationError(f"invalid resume position: {exc}") from exc


def start_metrics_server(metrics: DeliveryMetrics, port: int) -> None:
    """Start the ``/metrics`` endpoint; a bind failure is a startup error."""
    try:
        metrics.serve(port)
    except OSError as exc:
        raise StartupConfigurationError(
            f"failed to serve metrics on port {port}: {exc}"
        ) from exc


def run_cmd(
    config_file: Path = typer.Option(
        None, "--config", "-c", help="JSON config file (overrides EVENTROUTER_CONFIG)."
    ),
    sink: str = typer.Option(
        None, "--sink", "-s", help="Sink key(s) to use, comma separated."
    ),
) -> None:
    """Route Kubernetes Events to the configured sink until interrupted."""
    try:
        config = load_config(config_file)
        if sink:
            config = config.model_copy(update={"sink": sink})
        configure_logging(config.log_level)
        router = build_router(config)
        watcher = EventWatcher(
            load_core_api(config.kubeconfig),
            namespace=config.namespace,
            resync_interval=config.resync_interval,
        )
        if router.metrics is not None:
            start_metrics_server(router.metrics, config.metrics_port)
    except StartupConfigurationError as exc:
        console.print(f"[red]Startup failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    stop = threading.Event()

    def _handle_signal(signum: int, _frame: object) -> None:
        logger.info("Received signal %d, stopping", signum)
        stop.set()
        watcher.stop()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    try:
        router.run(watcher, stop)
    finally:
        close = getattr(router.sink, "close", None)
        if close is not None:
            close()
        if router.metrics is not None:
            router.metrics.close()
