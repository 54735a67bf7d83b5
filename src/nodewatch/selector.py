"""NodeSelector: resolve an alert spec into the fresh node snapshots it covers."""

from __future__ import annotations

from collections.abc import Iterator

from nodewatch.cluster import NodeFetcher
from nodewatch.errors import LIST_TARGET, FetchError
from nodewatch.observability.logging import get_logger
from nodewatch.types import NodeAlertSpec, NodeSnapshot, PollContext, under_minimum_message

logger = get_logger(__name__)


class NodeSelector:
    """Turns a NodeAlertSpec into the snapshots to evaluate.

    Named specs fetch exactly one node. Wildcard specs list by label
    selector, alert when fewer than ``min_nodes`` match, then re-fetch each
    listed node by name so evaluation always sees a fresh object.

    Snapshots are yielded lazily: the caller evaluates each node before the
    next one is fetched, so a failed re-fetch raises FetchError after the
    earlier nodes were already handled and before any later node is touched.
    """

    def __init__(self, fetcher: NodeFetcher) -> None:
        self._fetcher = fetcher

    def select(self, spec: NodeAlertSpec, ctx: PollContext) -> Iterator[NodeSnapshot]:
        if not spec.is_wildcard:
            yield self._get(spec.name)
            return

        listed = self._list(spec.node_filter)
        min_nodes = spec.report_status.min_nodes
        if len(listed) < min_nodes:
            logger.warning(
                "nodes.under_minimum",
                node_filter=spec.node_filter,
                matched=len(listed),
                min_nodes=min_nodes,
            )
            ctx.alert(spec, under_minimum_message(spec.node_filter))

        for entry in listed:
            yield self._get(entry.name)

    def _get(self, name: str) -> NodeSnapshot:
        try:
            return self._fetcher.get_node(name)
        except Exception as exc:
            raise FetchError(name, str(exc)) from exc

    def _list(self, label_selector: str) -> list[NodeSnapshot]:
        try:
            return list(self._fetcher.list_nodes(label_selector))
        except Exception as exc:
            raise FetchError(LIST_TARGET, str(exc)) from exc
