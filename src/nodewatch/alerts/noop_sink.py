"""No-op alert sink: for dry runs and tests."""

from __future__ import annotations

from typing import Any, Mapping

from nodewatch.alerts.base import Alert


class NoOpAlertSink:
    """Discards all alerts."""

    @classmethod
    def from_settings(cls, name: str, settings: Mapping[str, Any]) -> NoOpAlertSink:
        return cls()

    def fire(self, alert: Alert) -> None:
        pass
