"""Alert dispatch: route a message to the named alerter instance.

AlertDispatcher is the ``dispatch`` callable handed to poll_node. It never
raises: unknown alerter types, invalid settings, and delivery failures are
logged here and stay invisible to the polling core.
"""

from __future__ import annotations

from datetime import UTC, datetime

from nodewatch.alerts.base import Alert
from nodewatch.alerts.config import AlertersConfig
from nodewatch.alerts.email_sink import EmailAlertSink
from nodewatch.alerts.log_sink import LogAlertSink
from nodewatch.alerts.noop_sink import NoOpAlertSink
from nodewatch.alerts.slack_sink import SlackAlertSink
from nodewatch.observability.logging import get_logger

logger = get_logger(__name__)

_SINKS: dict[str, type] = {
    "log": LogAlertSink,
    "stderr": LogAlertSink,
    "noop": NoOpAlertSink,
    "slack": SlackAlertSink,
    "email": EmailAlertSink,
}

# Types that work without an entry under ``alerters:``
_SETTINGS_OPTIONAL: set[str] = {"log", "stderr", "noop"}


def register_sink(name: str, cls: type, settings_optional: bool = False) -> None:
    """Register a custom alert sink type. Call before dispatching."""
    _SINKS[name] = cls
    if settings_optional:
        _SETTINGS_OPTIONAL.add(name)


def available_sinks() -> list[str]:
    return sorted(_SINKS)


class AlertDispatcher:
    """Callable ``(alerter_type, alerter_name, message, alerters_config) -> None``.

    Counts what it delivered and what failed, for the poller's cycle summary.
    """

    def __init__(self) -> None:
        self.delivered = 0
        self.failed = 0

    def __call__(
        self,
        alerter_type: str,
        alerter_name: str,
        message: str,
        alerters_config: AlertersConfig,
    ) -> None:
        sink_cls = _SINKS.get(alerter_type)
        if sink_cls is None:
            self.failed += 1
            logger.error(
                "alert.unknown_alerter",
                alerter_type=alerter_type,
                alerter=alerter_name,
                available=available_sinks(),
                message=message,
            )
            return

        settings = alerters_config.settings_for(alerter_type, alerter_name)
        if settings is None and alerter_type not in _SETTINGS_OPTIONAL:
            self.failed += 1
            logger.error(
                "alert.unknown_instance",
                alerter_type=alerter_type,
                alerter=alerter_name,
                message=message,
            )
            return

        alert = Alert(
            alerter_type=alerter_type,
            alerter_name=alerter_name,
            message=message,
            timestamp=datetime.now(UTC).isoformat(),
        )
        try:
            sink = sink_cls.from_settings(alerter_name, settings or {})
            sink.fire(alert)
        except Exception as exc:  # nothing a sink raises reaches poll_node
            self.failed += 1
            logger.error(
                "alert.dispatch_failed",
                alerter_type=alerter_type,
                alerter=alerter_name,
                error=str(exc),
                error_type=type(exc).__name__,
                message=message,
            )
            return
        self.delivered += 1
        logger.debug("alert.delivered", alerter_type=alerter_type, alerter=alerter_name)
