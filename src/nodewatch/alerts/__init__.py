"""Alert delivery: sinks per backend, routed by alerter type and instance name."""

from nodewatch.alerts.base import Alert, AlertSink
from nodewatch.alerts.config import AlertersConfig
from nodewatch.alerts.dispatch import AlertDispatcher, available_sinks, register_sink
from nodewatch.alerts.email_sink import EmailAlertSink
from nodewatch.alerts.log_sink import LogAlertSink
from nodewatch.alerts.noop_sink import NoOpAlertSink
from nodewatch.alerts.slack_sink import SlackAlertSink

__all__ = [
    "Alert",
    "AlertSink",
    "AlertersConfig",
    "AlertDispatcher",
    "EmailAlertSink",
    "LogAlertSink",
    "NoOpAlertSink",
    "SlackAlertSink",
    "available_sinks",
    "register_sink",
]
