"""Node watch type system: condition kinds, alert specs, snapshots, poll context.

Every other nodewatch module imports from here. All records are transient:
built fresh for one poll invocation and discarded when it returns.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from nodewatch.alerts.config import AlertersConfig

WILDCARD = "*"
DEFAULT_PENDING_THRESHOLD = 10

# (alerter_type, alerter_name, message, alerters_config) -> None
DispatchFn = Callable[[str, str, str, "AlertersConfig"], None]


# =============================================================================
# Enums
# =============================================================================


class ConditionKind(StrEnum):
    """Node condition types that can raise a transition alert."""

    READY = "Ready"
    OUT_OF_DISK = "OutOfDisk"
    MEMORY_PRESSURE = "MemoryPressure"
    DISK_PRESSURE = "DiskPressure"

    @classmethod
    def parse(cls, value: str) -> ConditionKind | None:
        """Return the kind for a reported condition type, None if unrecognized."""
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def flag(self) -> str:
        """Name of the ReportStatus attribute that opts into this kind."""
        return _KIND_FLAGS[self]

    def message(self, node_name: str) -> str:
        return _KIND_MESSAGES[self].format(node=node_name)


_KIND_FLAGS: dict[ConditionKind, str] = {
    ConditionKind.READY: "node_ready",
    ConditionKind.OUT_OF_DISK: "node_out_of_disk",
    ConditionKind.MEMORY_PRESSURE: "node_memory_pressure",
    ConditionKind.DISK_PRESSURE: "node_disk_pressure",
}

_KIND_MESSAGES: dict[ConditionKind, str] = {
    ConditionKind.READY: (
        "Node {node} has changed ready status since last poll and may be restarting!"
    ),
    ConditionKind.OUT_OF_DISK: (
        "Node {node} has changed OutOfDisk status since last poll "
        "and may have observed disk space issues!"
    ),
    ConditionKind.MEMORY_PRESSURE: (
        "Node {node} has changed MemoryPressure status since last poll "
        "and may have observed memory pressure!"
    ),
    ConditionKind.DISK_PRESSURE: (
        "Node {node} has changed DiskPressure status since last poll "
        "and may have observed disk pressure!"
    ),
}


def under_minimum_message(node_filter: str) -> str:
    return f"Node count with filter {node_filter!r} is under minimum specification!"


# =============================================================================
# Alert specification
# =============================================================================


@dataclass(frozen=True)
class ReportStatus:
    """Per-kind opt-ins and thresholds for one node alert spec."""

    node_ready: bool = False
    node_out_of_disk: bool = False
    node_memory_pressure: bool = False
    node_disk_pressure: bool = False
    pending_threshold: int = 0  # seconds; <= 0 means DEFAULT_PENDING_THRESHOLD
    min_nodes: int = 0
    # Alert on every fresh enabled condition instead of stopping at the first.
    all_transitions: bool = False

    def enabled(self, kind: ConditionKind) -> bool:
        return bool(getattr(self, kind.flag))

    def normalized(self) -> ReportStatus:
        if self.pending_threshold > 0:
            return self
        return replace(self, pending_threshold=DEFAULT_PENDING_THRESHOLD)


@dataclass(frozen=True)
class NodeAlertSpec:
    """Which nodes to watch and where to send their alerts."""

    alerter_type: str
    alerter_name: str = "default"
    name: str = WILDCARD
    node_filter: str = ""
    report_status: ReportStatus = field(default_factory=ReportStatus)

    @property
    def is_wildcard(self) -> bool:
        return self.name == WILDCARD

    def normalized(self) -> NodeAlertSpec:
        status = self.report_status.normalized()
        if status is self.report_status:
            return self
        return replace(self, report_status=status)

    def describe(self) -> str:
        if self.is_wildcard:
            target = f"filter={self.node_filter or '<all>'}"
        else:
            target = f"node={self.name}"
        return f"{target} -> {self.alerter_type}/{self.alerter_name}"


# =============================================================================
# Snapshots
# =============================================================================


@dataclass(frozen=True)
class NodeCondition:
    type: str
    status: str = "Unknown"
    last_transition_time: datetime | None = None
    reason: str | None = None


@dataclass(frozen=True)
class NodeSnapshot:
    """A node as fetched from the cluster API at one point in time."""

    name: str
    created_at: datetime
    conditions: tuple[NodeCondition, ...] = ()
    labels: dict[str, str] = field(default_factory=dict, hash=False)


# =============================================================================
# Poll context
# =============================================================================


@dataclass(frozen=True)
class PollContext:
    """Ambient values for one poll cycle of one spec."""

    now: datetime
    tick_interval: int
    dispatch: DispatchFn
    alerters_config: AlertersConfig

    def alert(self, spec: NodeAlertSpec, message: str) -> None:
        self.dispatch(spec.alerter_type, spec.alerter_name, message, self.alerters_config)


def seconds_between(earlier: datetime, later: datetime) -> int:
    """Whole-second difference between two instants, truncating each to the second."""
    return int(later.timestamp()) - int(earlier.timestamp())
