"""Log alert sink: fires alerts via the configured log formatter (default)."""

from __future__ import annotations

from typing import Any, Mapping

from nodewatch.alerts.base import Alert
from nodewatch.errors import ConfigError
from nodewatch.observability.logging import get_logger

logger = get_logger("nodewatch.alerts")


class LogAlertSink:
    """Log alerts as structured warnings.

    Optional setting ``labels`` (mapping) rides along as a ``labels`` field.
    """

    def __init__(self, labels: Mapping[str, Any] | None = None) -> None:
        self._labels = dict(labels or {})

    @classmethod
    def from_settings(cls, name: str, settings: Mapping[str, Any]) -> LogAlertSink:
        labels = settings.get("labels")
        if labels is not None and not isinstance(labels, Mapping):
            raise ConfigError(f"log alerter {name!r}: 'labels' must be a mapping")
        return cls(labels=labels)

    def fire(self, alert: Alert) -> None:
        fields: dict[str, Any] = {
            "alerter": alert.alerter_name,
            "message": alert.message,
            "fired_at": alert.timestamp,
        }
        if self._labels:
            fields["labels"] = self._labels
        logger.warning("alert.fired", **fields)
