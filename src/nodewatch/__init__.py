"""nodewatch: alert on Kubernetes node condition transitions.

Public API:
    poll_node(spec, tick_interval, dispatch, alerters_config, fetcher)
                       : One poll cycle for one spec; raises FetchError on fetch failure
    NodeSelector       : Resolve a spec into fresh node snapshots
    ConditionEvaluator : Decide per node whether a transition alerts
    Poller             : Run every spec once per tick
    AlertDispatcher    : Route messages to log/slack/email/noop sinks
"""

from nodewatch.alerts import AlertDispatcher, AlertersConfig
from nodewatch.cluster import KubernetesNodeFetcher, NodeFetcher
from nodewatch.config import Settings, WatchConfig
from nodewatch.errors import AlertDeliveryError, ConfigError, FetchError, NodewatchError
from nodewatch.evaluator import ConditionEvaluator
from nodewatch.poll import poll_node
from nodewatch.scheduler import CycleResult, Poller
from nodewatch.selector import NodeSelector
from nodewatch.types import (
    DEFAULT_PENDING_THRESHOLD,
    WILDCARD,
    ConditionKind,
    NodeAlertSpec,
    NodeCondition,
    NodeSnapshot,
    PollContext,
    ReportStatus,
)

__all__ = [
    # Entry point
    "poll_node",
    "NodeSelector",
    "ConditionEvaluator",
    # Types
    "ConditionKind",
    "NodeAlertSpec",
    "NodeCondition",
    "NodeSnapshot",
    "PollContext",
    "ReportStatus",
    "WILDCARD",
    "DEFAULT_PENDING_THRESHOLD",
    # Collaborators
    "NodeFetcher",
    "KubernetesNodeFetcher",
    "AlertDispatcher",
    "AlertersConfig",
    "Poller",
    "CycleResult",
    "Settings",
    "WatchConfig",
    # Errors
    "NodewatchError",
    "FetchError",
    "ConfigError",
    "AlertDeliveryError",
]
