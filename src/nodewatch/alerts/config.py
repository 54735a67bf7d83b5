"""Alerters configuration: alerter type -> instance name -> settings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from nodewatch.errors import ConfigError


@dataclass
class AlertersConfig:
    """Per-backend settings for every named alerter instance.

    Mirrors the ``alerters:`` block of the config file::

        alerters:
          slack:
            ops: {webhook_url: "https://hooks.slack.com/..."}
          email:
            oncall: {host: smtp.internal, from_addr: ..., to_addrs: [...]}
    """

    backends: dict[str, dict[str, dict[str, Any]]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Any) -> AlertersConfig:
        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            raise ConfigError("'alerters' must be a mapping of alerter type to instances")
        backends: dict[str, dict[str, dict[str, Any]]] = {}
        for alerter_type, instances in raw.items():
            instances = instances or {}
            if not isinstance(instances, dict):
                raise ConfigError(f"alerters.{alerter_type} must be a mapping of names to settings")
            backends[str(alerter_type)] = {}
            for name, settings in instances.items():
                settings = settings or {}
                if not isinstance(settings, dict):
                    raise ConfigError(f"alerters.{alerter_type}.{name} must be a mapping")
                backends[str(alerter_type)][str(name)] = dict(settings)
        return cls(backends=backends)

    def settings_for(self, alerter_type: str, alerter_name: str) -> dict[str, Any] | None:
        return self.backends.get(alerter_type, {}).get(alerter_name)

    def instances(self) -> list[tuple[str, str]]:
        return [(t, n) for t, names in self.backends.items() for n in names]


def number_setting(
    where: str,
    settings: Mapping[str, Any],
    key: str,
    default: float,
    kind: type = float,
) -> Any:
    """Read a numeric setting, raising ConfigError instead of ValueError/TypeError."""
    value = settings.get(key, default)
    if isinstance(value, bool):
        raise ConfigError(f"{where}: {key!r} must be a number, got {value!r}")
    try:
        return kind(value)
    except (TypeError, ValueError) as err:
        raise ConfigError(f"{where}: {key!r} must be a number, got {value!r}") from err
