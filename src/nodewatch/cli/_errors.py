"""CLI error handling helpers."""

from __future__ import annotations

import typer

from nodewatch.cluster import KubernetesNodeFetcher, NodeFetcher
from nodewatch.config import Settings


def handle_error(msg: str) -> None:
    """Print an error message and exit."""
    typer.echo(f"Error: {msg}", err=True)
    raise typer.Exit(1)


def build_fetcher(settings: Settings) -> NodeFetcher:
    """Connect to the cluster, or exit with a helpful message."""
    try:
        return KubernetesNodeFetcher.from_kubeconfig(
            kubeconfig=settings.kubeconfig,
            context=settings.kube_context,
            timeout_seconds=settings.fetch_timeout,
        )
    except Exception as exc:
        typer.echo(
            f"Could not load Kubernetes configuration: {exc}\n"
            f"\n"
            f"Pass --kubeconfig/--context, set NODEWATCH_KUBECONFIG,\n"
            f"or run inside a cluster with a service account.",
            err=True,
        )
        raise typer.Exit(1) from exc
