"""ConditionEvaluator: decide per node whether a condition transition should alert.

A condition is a fresh transition when its ``last_transition_time`` is less
than one tick interval old, i.e. it changed since (about) the previous poll.
No state is kept between calls; the verdict depends only on the snapshot,
the spec, and the poll context.
"""

from __future__ import annotations

from nodewatch.observability.logging import get_logger
from nodewatch.types import (
    ConditionKind,
    NodeAlertSpec,
    NodeSnapshot,
    PollContext,
    seconds_between,
)

logger = get_logger(__name__)


class ConditionEvaluator:
    """Evaluates one node snapshot against one (normalized) alert spec."""

    def evaluate(
        self, node: NodeSnapshot, spec: NodeAlertSpec, ctx: PollContext
    ) -> list[ConditionKind]:
        """Dispatch alerts for fresh, opted-in transitions on ``node``.

        Returns the kinds that alerted, in condition order. Unless
        ``report_status.all_transitions`` is set, scanning stops at the first
        alert, so at most one kind is returned.
        """
        status = spec.report_status
        age = seconds_between(node.created_at, ctx.now)
        if age <= status.pending_threshold:
            logger.debug(
                "node.skipped",
                node=node.name,
                age_seconds=age,
                pending_threshold=status.pending_threshold,
            )
            return []

        fired: list[ConditionKind] = []
        for condition in node.conditions:
            kind = ConditionKind.parse(condition.type)
            if kind is None or condition.last_transition_time is None:
                continue
            since = seconds_between(condition.last_transition_time, ctx.now)
            if since >= ctx.tick_interval or not status.enabled(kind):
                continue

            logger.info(
                "node.transition",
                node=node.name,
                condition=kind.value,
                status=condition.status,
                seconds_since_transition=since,
            )
            ctx.alert(spec, kind.message(node.name))
            fired.append(kind)
            if not status.all_transitions:
                break
        return fired
