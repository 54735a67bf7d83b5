"""Email alert sink: plain-text message over SMTP."""

from __future__ import annotations

import smtplib
from email.message import EmailMessage
from typing import Any, Mapping

from nodewatch.alerts.base import Alert
from nodewatch.alerts.config import number_setting
from nodewatch.errors import AlertDeliveryError, ConfigError

_DEFAULT_SUBJECT = "nodewatch alert"


class EmailAlertSink:
    """Send each alert as a plain-text email.

    Settings:
        host, from_addr, to_addrs (required; to_addrs is a list or a
        comma-separated string)
        port (default 25), username/password, starttls (default False),
        subject, timeout (seconds, default 30)
    """

    def __init__(
        self,
        host: str,
        from_addr: str,
        to_addrs: list[str],
        port: int = 25,
        username: str | None = None,
        password: str | None = None,
        starttls: bool = False,
        subject: str = _DEFAULT_SUBJECT,
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.from_addr = from_addr
        self.to_addrs = to_addrs
        self.username = username
        self._password = password
        self.starttls = starttls
        self.subject = subject
        self.timeout = timeout

    @classmethod
    def from_settings(cls, name: str, settings: Mapping[str, Any]) -> EmailAlertSink:
        where = f"email alerter {name!r}"
        missing = [k for k in ("host", "from_addr", "to_addrs") if not settings.get(k)]
        if missing:
            raise ConfigError(f"{where} missing: {', '.join(missing)}")
        for key in ("host", "from_addr", "subject", "username", "password"):
            if settings.get(key) is not None and not isinstance(settings[key], str):
                raise ConfigError(f"{where}: {key!r} must be a string")

        to_addrs = settings["to_addrs"]
        if isinstance(to_addrs, str):
            to_addrs = [a.strip() for a in to_addrs.split(",") if a.strip()]
        elif not isinstance(to_addrs, list) or not all(isinstance(a, str) for a in to_addrs):
            raise ConfigError(f"{where}: 'to_addrs' must be a list of addresses or a string")
        return cls(
            host=settings["host"],
            port=number_setting(where, settings, "port", 25, kind=int),
            from_addr=settings["from_addr"],
            to_addrs=list(to_addrs),
            username=settings.get("username"),
            password=settings.get("password"),
            starttls=bool(settings.get("starttls", False)),
            subject=settings.get("subject") or _DEFAULT_SUBJECT,
            timeout=number_setting(where, settings, "timeout", 30.0),
        )

    def build_message(self, alert: Alert) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = self.subject
        msg["From"] = self.from_addr
        msg["To"] = ", ".join(self.to_addrs)
        msg.set_content(f"{alert.message}\n\nFired at {alert.timestamp}\n")
        return msg

    def fire(self, alert: Alert) -> None:
        msg = self.build_message(alert)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.starttls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self._password or "")
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise AlertDeliveryError(f"Failed to send email via {self.host}: {exc}") from exc
