"""Alert primitives: Alert record and AlertSink protocol."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol, runtime_checkable


@dataclass(frozen=True)
class Alert:
    """One message bound for one named alerter instance."""

    alerter_type: str
    alerter_name: str
    message: str
    timestamp: str  # ISO


@runtime_checkable
class AlertSink(Protocol):
    """Where alert notifications go.

    Sinks are built per dispatch from the named instance's settings and
    raise AlertDeliveryError when the backend rejects a message.
    """

    @classmethod
    def from_settings(cls, name: str, settings: Mapping[str, Any]) -> AlertSink: ...

    def fire(self, alert: Alert) -> None: ...
