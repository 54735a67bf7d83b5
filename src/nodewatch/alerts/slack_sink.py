"""Slack alert sink: post to an incoming webhook."""

from __future__ import annotations

from typing import Any, Mapping

import httpx

from nodewatch.alerts.base import Alert
from nodewatch.alerts.config import number_setting
from nodewatch.errors import AlertDeliveryError, ConfigError


class SlackAlertSink:
    """POST ``{"text": ...}`` to a Slack incoming webhook.

    Settings:
        webhook_url  (required)
        channel      override the webhook's default channel
        username     override the posting bot name
        timeout      seconds, default 10
    """

    def __init__(
        self,
        webhook_url: str,
        channel: str | None = None,
        username: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._webhook_url = webhook_url
        self._channel = channel
        self._username = username
        self._timeout = timeout

    @classmethod
    def from_settings(cls, name: str, settings: Mapping[str, Any]) -> SlackAlertSink:
        where = f"slack alerter {name!r}"
        webhook_url = settings.get("webhook_url")
        if not webhook_url:
            raise ConfigError(f"{where} requires 'webhook_url'")
        if not isinstance(webhook_url, str):
            raise ConfigError(f"{where}: 'webhook_url' must be a string")
        try:
            url = httpx.URL(webhook_url)
        except httpx.InvalidURL as err:
            raise ConfigError(f"{where}: invalid webhook_url: {err}") from err
        if url.scheme not in ("http", "https") or not url.host:
            raise ConfigError(f"{where}: webhook_url must be an http(s) URL")
        return cls(
            webhook_url=webhook_url,
            channel=settings.get("channel"),
            username=settings.get("username"),
            timeout=number_setting(where, settings, "timeout", 10.0),
        )

    def payload(self, alert: Alert) -> dict[str, str]:
        body = {"text": alert.message}
        if self._channel:
            body["channel"] = self._channel
        if self._username:
            body["username"] = self._username
        return body

    def fire(self, alert: Alert) -> None:
        try:
            response = httpx.post(
                self._webhook_url,
                json=self.payload(alert),
                timeout=self._timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise AlertDeliveryError(
                f"Slack webhook returned {exc.response.status_code}: {exc.response.text}"
            ) from exc
        except httpx.HTTPError as exc:
            raise AlertDeliveryError(f"Failed to send Slack message: {exc}") from exc
        except httpx.InvalidURL as exc:
            raise AlertDeliveryError(f"Invalid Slack webhook URL: {exc}") from exc
