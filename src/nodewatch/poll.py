"""poll_node: one poll cycle for one node alert spec."""

from __future__ import annotations

from datetime import UTC, datetime

from nodewatch.alerts.config import AlertersConfig
from nodewatch.cluster import NodeFetcher
from nodewatch.evaluator import ConditionEvaluator
from nodewatch.observability.logging import get_logger
from nodewatch.selector import NodeSelector
from nodewatch.types import DispatchFn, NodeAlertSpec, PollContext

logger = get_logger(__name__)


def poll_node(
    spec: NodeAlertSpec,
    tick_interval: int,
    dispatch: DispatchFn,
    alerters_config: AlertersConfig,
    fetcher: NodeFetcher,
    now: datetime | None = None,
) -> None:
    """Resolve the spec's nodes and alert on fresh condition transitions.

    Returns normally after a full scan, whether or not anything alerted.
    Raises FetchError on the first failed fetch; nodes after the failure are
    not evaluated in this cycle.
    """
    spec = spec.normalized()
    ctx = PollContext(
        now=now or datetime.now(UTC),
        tick_interval=tick_interval,
        dispatch=dispatch,
        alerters_config=alerters_config,
    )
    selector = NodeSelector(fetcher)
    evaluator = ConditionEvaluator()

    logger.debug("poll.started", spec=spec.describe(), tick_interval=tick_interval)
    evaluated = 0
    for node in selector.select(spec, ctx):
        evaluator.evaluate(node, spec, ctx)
        evaluated += 1
    logger.debug("poll.completed", spec=spec.describe(), nodes=evaluated)
