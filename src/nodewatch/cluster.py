"""Cluster fetch capability: protocol plus the Kubernetes-backed implementation.

The core only needs two calls, ``get_node`` and ``list_nodes``. Anything that
satisfies NodeFetcher can stand in for the cluster (tests use an in-memory fake).
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

from nodewatch.observability.logging import get_logger
from nodewatch.types import NodeCondition, NodeSnapshot

logger = get_logger(__name__)

_EPOCH = datetime.fromtimestamp(0, UTC)


@runtime_checkable
class NodeFetcher(Protocol):
    """Where node snapshots come from."""

    def get_node(self, name: str) -> NodeSnapshot: ...

    def list_nodes(self, label_selector: str = "") -> list[NodeSnapshot]: ...


def snapshot_from_v1_node(node: Any) -> NodeSnapshot:
    """Convert a ``kubernetes.client.V1Node`` into a NodeSnapshot.

    Missing metadata or status (seen on half-registered nodes) degrades to
    an epoch creation time and an empty condition list.
    """
    metadata = node.metadata
    status = node.status
    conditions = tuple(
        NodeCondition(
            type=c.type,
            status=c.status or "Unknown",
            last_transition_time=_aware(c.last_transition_time),
            reason=c.reason,
        )
        for c in ((status.conditions if status is not None else None) or [])
    )
    return NodeSnapshot(
        name=metadata.name,
        created_at=_aware(metadata.creation_timestamp) or _EPOCH,
        conditions=conditions,
        labels=dict(metadata.labels or {}),
    )


def _aware(ts: datetime | None) -> datetime | None:
    if ts is None:
        return None
    if ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts


class KubernetesNodeFetcher:
    """NodeFetcher backed by ``kubernetes.client.CoreV1Api``.

    Client errors (``ApiException``, connection errors) propagate unchanged.
    The selector wraps them into FetchError.
    """

    def __init__(self, api: Any, timeout_seconds: int = 30) -> None:
        self._api = api
        self._timeout = timeout_seconds

    @classmethod
    def from_kubeconfig(
        cls,
        kubeconfig: str | None = None,
        context: str | None = None,
        timeout_seconds: int = 30,
    ) -> KubernetesNodeFetcher:
        """Load kubeconfig (or in-cluster config when none is found) and build a fetcher."""
        from kubernetes import client, config
        from kubernetes.config.config_exception import ConfigException

        try:
            config.load_kube_config(config_file=kubeconfig, context=context)
            source = kubeconfig or "default kubeconfig"
        except ConfigException:
            if kubeconfig is not None:
                raise
            config.load_incluster_config()
            source = "in-cluster"
        logger.info("cluster.client_loaded", source=source, context=context)
        return cls(client.CoreV1Api(), timeout_seconds=timeout_seconds)

    def get_node(self, name: str) -> NodeSnapshot:
        node = self._api.read_node(name, _request_timeout=self._timeout)
        return snapshot_from_v1_node(node)

    def list_nodes(self, label_selector: str = "") -> list[NodeSnapshot]:
        result = self._api.list_node(
            label_selector=label_selector,
            watch=False,
            timeout_seconds=self._timeout,
        )
        return [snapshot_from_v1_node(n) for n in result.items]
