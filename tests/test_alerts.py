"""Tests for alert delivery: sinks, alerters config, dispatcher routing."""

from __future__ import annotations

import logging
import smtplib
from unittest.mock import MagicMock, patch

import httpx
import pytest

from nodewatch.alerts import (
    Alert,
    AlertDispatcher,
    AlertersConfig,
    AlertSink,
    EmailAlertSink,
    LogAlertSink,
    NoOpAlertSink,
    SlackAlertSink,
    available_sinks,
    register_sink,
)
from nodewatch.alerts import dispatch as dispatch_mod
from nodewatch.errors import AlertDeliveryError, ConfigError

ALERT = Alert(
    alerter_type="slack",
    alerter_name="ops",
    message="Node n1 has changed ready status since last poll and may be restarting!",
    timestamp="2026-01-01T12:00:00+00:00",
)


# =============================================================================
# AlertersConfig
# =============================================================================


class TestAlertersConfig:
    def test_from_dict(self):
        cfg = AlertersConfig.from_dict({"slack": {"ops": {"webhook_url": "u"}}, "log": {"default": None}})
        assert cfg.settings_for("slack", "ops") == {"webhook_url": "u"}
        assert cfg.settings_for("log", "default") == {}
        assert cfg.settings_for("slack", "other") is None
        assert cfg.settings_for("email", "ops") is None
        assert sorted(cfg.instances()) == [("log", "default"), ("slack", "ops")]

    def test_none_is_empty(self):
        assert AlertersConfig.from_dict(None).instances() == []

    @pytest.mark.parametrize("raw", [[1, 2], {"slack": ["ops"]}, {"slack": {"ops": "url"}}])
    def test_rejects_bad_shapes(self, raw):
        with pytest.raises(ConfigError):
            AlertersConfig.from_dict(raw)


# =============================================================================
# Sinks
# =============================================================================


class TestSinkProtocol:
    def test_builtin_sinks_satisfy_protocol(self):
        sinks = [
            LogAlertSink(),
            NoOpAlertSink(),
            SlackAlertSink("https://hooks.example/x"),
            EmailAlertSink("smtp.internal", "a@example.com", ["b@example.com"]),
        ]
        for sink in sinks:
            assert isinstance(sink, AlertSink)

    def test_noop_discards(self):
        assert NoOpAlertSink.from_settings("x", {}).fire(ALERT) is None


class TestLogSink:
    def test_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="nodewatch.alerts"):
            LogAlertSink.from_settings("default", {"labels": {"cluster": "prod"}}).fire(ALERT)
        record = caplog.records[-1]
        assert record.getMessage() == "alert.fired"
        assert record._structured["message"] == ALERT.message
        assert record._structured["labels"] == {"cluster": "prod"}

    def test_labels_cannot_shadow_alert_fields(self, caplog):
        sink = LogAlertSink.from_settings("default", {"labels": {"message": "dup", "alerter": "x"}})
        with caplog.at_level(logging.WARNING, logger="nodewatch.alerts"):
            sink.fire(ALERT)
        record = caplog.records[-1]
        assert record._structured["message"] == ALERT.message
        assert record._structured["alerter"] == "ops"
        assert record._structured["labels"] == {"message": "dup", "alerter": "x"}

    def test_labels_must_be_mapping(self):
        with pytest.raises(ConfigError, match="labels"):
            LogAlertSink.from_settings("default", {"labels": ["prod"]})


class TestSlackSink:
    def test_requires_webhook(self):
        with pytest.raises(ConfigError, match="webhook_url"):
            SlackAlertSink.from_settings("ops", {})

    def test_payload_includes_optional_fields(self):
        sink = SlackAlertSink.from_settings(
            "ops", {"webhook_url": "https://hooks.example/x", "channel": "#ops", "username": "nw"}
        )
        assert sink.payload(ALERT) == {"text": ALERT.message, "channel": "#ops", "username": "nw"}

    def test_non_numeric_timeout_is_config_error(self):
        with pytest.raises(ConfigError, match="timeout"):
            SlackAlertSink.from_settings(
                "ops", {"webhook_url": "https://hooks.example/x", "timeout": "fast"}
            )

    @pytest.mark.parametrize("url", ["hooks.example/x", "ftp://hooks.example/x", 42])
    def test_rejects_non_http_webhook(self, url):
        with pytest.raises(ConfigError, match="webhook_url"):
            SlackAlertSink.from_settings("ops", {"webhook_url": url})

    def test_invalid_url_at_send_raises_delivery_error(self):
        sink = SlackAlertSink("https://hooks.example/x")
        with patch(
            "nodewatch.alerts.slack_sink.httpx.post",
            side_effect=httpx.InvalidURL("Invalid non-printable ASCII character in URL"),
        ):
            with pytest.raises(AlertDeliveryError, match="Invalid Slack webhook URL"):
                sink.fire(ALERT)

    def test_posts_to_webhook(self):
        sink = SlackAlertSink("https://hooks.example/x", timeout=3)
        response = httpx.Response(200, request=httpx.Request("POST", "https://hooks.example/x"))
        with patch("nodewatch.alerts.slack_sink.httpx.post", return_value=response) as post:
            sink.fire(ALERT)
        post.assert_called_once_with(
            "https://hooks.example/x", json={"text": ALERT.message}, timeout=3
        )

    def test_error_status_raises_delivery_error(self):
        sink = SlackAlertSink("https://hooks.example/x")
        response = httpx.Response(
            500, text="boom", request=httpx.Request("POST", "https://hooks.example/x")
        )
        with patch("nodewatch.alerts.slack_sink.httpx.post", return_value=response):
            with pytest.raises(AlertDeliveryError, match="500"):
                sink.fire(ALERT)

    def test_transport_error_raises_delivery_error(self):
        sink = SlackAlertSink("https://hooks.example/x")
        with patch(
            "nodewatch.alerts.slack_sink.httpx.post",
            side_effect=httpx.ConnectError("refused"),
        ):
            with pytest.raises(AlertDeliveryError, match="refused"):
                sink.fire(ALERT)


class TestEmailSink:
    SETTINGS = {
        "host": "smtp.internal",
        "port": 587,
        "from_addr": "nodewatch@example.com",
        "to_addrs": "a@example.com, b@example.com",
        "starttls": True,
        "username": "nw",
        "password": "secret",
    }

    def test_missing_settings(self):
        with pytest.raises(ConfigError, match="host"):
            EmailAlertSink.from_settings("oncall", {"from_addr": "x", "to_addrs": ["y"]})

    @pytest.mark.parametrize(
        "override,key",
        [
            ({"port": "smtp"}, "port"),
            ({"timeout": "fast"}, "timeout"),
            ({"port": True}, "port"),
            ({"to_addrs": 5}, "to_addrs"),
            ({"to_addrs": ["a@example.com", 7]}, "to_addrs"),
            ({"host": 10}, "host"),
        ],
    )
    def test_bad_values_are_config_errors(self, override, key):
        with pytest.raises(ConfigError, match=key):
            EmailAlertSink.from_settings("oncall", {**self.SETTINGS, **override})

    def test_comma_separated_recipients(self):
        sink = EmailAlertSink.from_settings("oncall", self.SETTINGS)
        assert sink.to_addrs == ["a@example.com", "b@example.com"]
        assert sink.port == 587

    def test_build_message(self):
        msg = EmailAlertSink.from_settings("oncall", self.SETTINGS).build_message(ALERT)
        assert msg["To"] == "a@example.com, b@example.com"
        assert msg["Subject"] == "nodewatch alert"
        assert ALERT.message in msg.get_content()

    def test_sends_via_smtp(self):
        smtp = MagicMock()
        with patch("nodewatch.alerts.email_sink.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.__enter__.return_value = smtp
            EmailAlertSink.from_settings("oncall", self.SETTINGS).fire(ALERT)
        smtp_cls.assert_called_once_with("smtp.internal", 587, timeout=30.0)
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("nw", "secret")
        smtp.send_message.assert_called_once()

    def test_smtp_failure_raises_delivery_error(self):
        with patch(
            "nodewatch.alerts.email_sink.smtplib.SMTP",
            side_effect=smtplib.SMTPConnectError(421, "busy"),
        ):
            with pytest.raises(AlertDeliveryError, match="smtp.internal"):
                EmailAlertSink.from_settings("oncall", self.SETTINGS).fire(ALERT)


# =============================================================================
# Dispatcher
# =============================================================================


class _CollectingSink:
    fired: list[Alert] = []

    @classmethod
    def from_settings(cls, name, settings):
        return cls()

    def fire(self, alert):
        _CollectingSink.fired.append(alert)


class _FailingSink:
    @classmethod
    def from_settings(cls, name, settings):
        return cls()

    def fire(self, alert):
        raise AlertDeliveryError("backend down")


@pytest.fixture
def custom_sinks():
    saved_sinks = dict(dispatch_mod._SINKS)
    saved_optional = set(dispatch_mod._SETTINGS_OPTIONAL)
    _CollectingSink.fired = []
    register_sink("collect", _CollectingSink, settings_optional=True)
    register_sink("failing", _FailingSink, settings_optional=True)
    yield
    dispatch_mod._SINKS.clear()
    dispatch_mod._SINKS.update(saved_sinks)
    dispatch_mod._SETTINGS_OPTIONAL.clear()
    dispatch_mod._SETTINGS_OPTIONAL.update(saved_optional)


class TestDispatcher:
    def test_builtin_types(self):
        assert {"log", "stderr", "noop", "slack", "email"} <= set(available_sinks())

    def test_routes_to_registered_sink(self, custom_sinks):
        dispatcher = AlertDispatcher()
        dispatcher("collect", "default", "hello", AlertersConfig())
        assert [a.message for a in _CollectingSink.fired] == ["hello"]
        assert _CollectingSink.fired[0].alerter_type == "collect"
        assert dispatcher.delivered == 1

    def test_unknown_type_is_logged_not_raised(self, caplog):
        dispatcher = AlertDispatcher()
        with caplog.at_level(logging.ERROR):
            dispatcher("pager", "x", "hello", AlertersConfig())
        assert dispatcher.failed == 1
        assert any(r.getMessage() == "alert.unknown_alerter" for r in caplog.records)

    def test_missing_instance_is_logged(self, caplog):
        dispatcher = AlertDispatcher()
        with caplog.at_level(logging.ERROR):
            dispatcher("slack", "nope", "hello", AlertersConfig())
        assert dispatcher.failed == 1
        assert any(r.getMessage() == "alert.unknown_instance" for r in caplog.records)

    def test_log_type_needs_no_settings(self, caplog):
        dispatcher = AlertDispatcher()
        with caplog.at_level(logging.WARNING):
            dispatcher("log", "default", "hello", AlertersConfig())
        assert dispatcher.delivered == 1
        assert any(r.getMessage() == "alert.fired" for r in caplog.records)

    def test_delivery_failure_is_contained(self, custom_sinks, caplog):
        dispatcher = AlertDispatcher()
        with caplog.at_level(logging.ERROR):
            dispatcher("failing", "default", "hello", AlertersConfig())
        assert dispatcher.failed == 1
        assert dispatcher.delivered == 0
        failed = [r for r in caplog.records if r.getMessage() == "alert.dispatch_failed"]
        assert failed and failed[0]._structured["error"] == "backend down"

    def test_invalid_settings_are_contained(self, caplog):
        dispatcher = AlertDispatcher()
        cfg = AlertersConfig(backends={"slack": {"ops": {}}})
        with caplog.at_level(logging.ERROR):
            dispatcher("slack", "ops", "hello", cfg)
        assert dispatcher.failed == 1

    @pytest.mark.parametrize(
        "alerter_type,settings",
        [
            (
                "email",
                {"host": "smtp.internal", "from_addr": "a@x", "to_addrs": "b@x", "port": "smtp"},
            ),
            ("email", {"host": "smtp.internal", "from_addr": "a@x", "to_addrs": 5}),
            ("slack", {"webhook_url": "https://hooks.example/x", "timeout": "fast"}),
            ("slack", {"webhook_url": "not a url"}),
        ],
    )
    def test_bad_backend_settings_are_counted_not_raised(self, alerter_type, settings, caplog):
        dispatcher = AlertDispatcher()
        cfg = AlertersConfig(backends={alerter_type: {"ops": settings}})
        with caplog.at_level(logging.ERROR):
            dispatcher(alerter_type, "ops", "hello", cfg)
        assert dispatcher.failed == 1
        assert dispatcher.delivered == 0
        failed = [r for r in caplog.records if r.getMessage() == "alert.dispatch_failed"]
        assert failed[0]._structured["error_type"] == "ConfigError"

    def test_log_labels_clashing_with_fields_still_deliver(self, caplog):
        dispatcher = AlertDispatcher()
        cfg = AlertersConfig(backends={"log": {"ops": {"labels": {"message": "dup"}}}})
        with caplog.at_level(logging.WARNING):
            dispatcher("log", "ops", "hello", cfg)
        assert dispatcher.delivered == 1
        fired = [r for r in caplog.records if r.getMessage() == "alert.fired"]
        assert fired[0]._structured["message"] == "hello"

    def test_invalid_url_at_send_is_contained(self, caplog):
        dispatcher = AlertDispatcher()
        cfg = AlertersConfig(backends={"slack": {"ops": {"webhook_url": "https://hooks.example/x"}}})
        with patch(
            "nodewatch.alerts.slack_sink.httpx.post",
            side_effect=httpx.InvalidURL("Invalid non-printable ASCII character in URL"),
        ):
            with caplog.at_level(logging.ERROR):
                dispatcher("slack", "ops", "hello", cfg)
        assert dispatcher.failed == 1

    def test_unexpected_sink_exception_is_contained(self, custom_sinks, caplog):
        class _BrokenSink:
            @classmethod
            def from_settings(cls, name, settings):
                return cls()

            def fire(self, alert):
                raise RuntimeError("socket closed")

        register_sink("broken", _BrokenSink, settings_optional=True)
        dispatcher = AlertDispatcher()
        with caplog.at_level(logging.ERROR):
            dispatcher("broken", "default", "hello", AlertersConfig())
        assert dispatcher.failed == 1
        failed = [r for r in caplog.records if r.getMessage() == "alert.dispatch_failed"]
        assert failed[0]._structured == {
            "alerter_type": "broken",
            "alerter": "default",
            "error": "socket closed",
            "error_type": "RuntimeError",
            "message": "hello",
        }

    def test_slack_end_to_end(self):
        dispatcher = AlertDispatcher()
        cfg = AlertersConfig(backends={"slack": {"ops": {"webhook_url": "https://hooks.example/x"}}})
        response = httpx.Response(200, request=httpx.Request("POST", "https://hooks.example/x"))
        with patch("nodewatch.alerts.slack_sink.httpx.post", return_value=response) as post:
            dispatcher("slack", "ops", "hello", cfg)
        assert post.call_args.kwargs["json"] == {"text": "hello"}
        assert dispatcher.delivered == 1
