"""CLI commands for polling: run, check, validate."""

from __future__ import annotations

import signal
import threading

import typer

from nodewatch.alerts import AlertDispatcher, available_sinks
from nodewatch.cli._errors import build_fetcher, handle_error
from nodewatch.config import Settings, WatchConfig
from nodewatch.errors import ConfigError
from nodewatch.observability import ObservabilityConfig, setup_logging, shutdown_logging
from nodewatch.scheduler import Poller


def _load(
    config: str | None,
    interval: int | None,
    kubeconfig: str | None = None,
    context: str | None = None,
) -> tuple[Settings, WatchConfig]:
    try:
        settings = Settings()
        if config is not None:
            settings.config_path = config
        if interval is not None:
            if interval <= 0:
                raise ConfigError(f"--interval must be positive, got {interval}")
            settings.poll_interval = interval
        if kubeconfig is not None:
            settings.kubeconfig = kubeconfig
        if context is not None:
            settings.kube_context = context
        watch = WatchConfig.load(settings.config_path)
    except ConfigError as exc:
        handle_error(str(exc))
    return settings, watch


def _setup_logging() -> None:
    try:
        setup_logging(ObservabilityConfig())
    except ValueError as exc:
        handle_error(str(exc))


def _build_poller(settings: Settings, watch: WatchConfig) -> tuple[Poller, AlertDispatcher]:
    fetcher = build_fetcher(settings)
    dispatcher = AlertDispatcher()
    poller = Poller(watch, fetcher, dispatcher, settings.poll_interval)
    return poller, dispatcher


def run(
    config: str | None = typer.Option(
        None, "--config", "-c", help="Watch file (default: $NODEWATCH_CONFIG)."
    ),
    interval: int | None = typer.Option(
        None,
        "--interval",
        "-i",
        help="Tick interval in seconds (default: $NODEWATCH_POLL_INTERVAL).",
    ),
    kubeconfig: str | None = typer.Option(None, "--kubeconfig", help="Path to kubeconfig."),
    context: str | None = typer.Option(None, "--context", help="Kubeconfig context to use."),
) -> None:
    """Poll node health every tick until interrupted."""
    settings, watch = _load(config, interval, kubeconfig, context)
    _setup_logging()
    poller, _ = _build_poller(settings, watch)

    stop = threading.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, lambda *_: stop.set())
    try:
        poller.run(stop)
    finally:
        shutdown_logging()


def check(
    config: str | None = typer.Option(
        None, "--config", "-c", help="Watch file (default: $NODEWATCH_CONFIG)."
    ),
    interval: int | None = typer.Option(
        None,
        "--interval",
        "-i",
        help="Tick interval in seconds (default: $NODEWATCH_POLL_INTERVAL).",
    ),
    kubeconfig: str | None = typer.Option(None, "--kubeconfig", help="Path to kubeconfig."),
    context: str | None = typer.Option(None, "--context", help="Kubeconfig context to use."),
) -> None:
    """Run a single poll cycle. Exits 1 if any spec failed to fetch its nodes."""
    settings, watch = _load(config, interval, kubeconfig, context)
    _setup_logging()
    try:
        poller, dispatcher = _build_poller(settings, watch)
        result = poller.poll_once()
    finally:
        shutdown_logging()

    typer.echo(
        f"Polled {result.specs} spec(s): "
        f"{dispatcher.delivered} alert(s) delivered, {dispatcher.failed} failed."
    )
    for err in result.errors:
        typer.echo(f"  {err}", err=True)
    if not result.ok:
        raise typer.Exit(1)


def validate(
    config: str | None = typer.Option(
        None, "--config", "-c", help="Watch file (default: $NODEWATCH_CONFIG)."
    ),
) -> None:
    """Parse the watch file and list its node alert specs."""
    _, watch = _load(config, None)
    known = set(available_sinks())
    for spec in watch.nodes:
        marker = "" if spec.alerter_type in known else "  (unknown alerter type)"
        typer.echo(f"{spec.describe()}{marker}")
    typer.echo(
        f"{len(watch.nodes)} node spec(s), {len(watch.alerters.instances())} alerter instance(s)."
    )
