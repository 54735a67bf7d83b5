"""Configuration: YAML watch file plus env-var process settings.

Watch file (what to check and where to alert)::

    alerters:
      slack:
        ops: {webhook_url: "https://hooks.slack.com/services/..."}
    nodes:
      - name: "*"
        node_filter: "node-role.kubernetes.io/worker"
        alerter_type: slack
        alerter_name: ops
        report_status:
          node_ready: true
          node_disk_pressure: true
          min_nodes: 3
          pending_threshold: 30

Process settings use the NODEWATCH_ prefix (NODEWATCH_CONFIG,
NODEWATCH_POLL_INTERVAL, NODEWATCH_KUBECONFIG, NODEWATCH_KUBE_CONTEXT,
NODEWATCH_FETCH_TIMEOUT).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from nodewatch.alerts.config import AlertersConfig
from nodewatch.errors import ConfigError
from nodewatch.types import WILDCARD, NodeAlertSpec, ReportStatus

_SPEC_KEYS = {"name", "node_filter", "alerter_type", "alerter_name", "report_status"}


def _int_env(var: str, default: int) -> int:
    raw = os.environ.get(var)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as err:
        raise ConfigError(f"{var}={raw!r} is not a valid integer") from err


@dataclass
class Settings:
    """Process settings, env-var driven."""

    config_path: str = field(
        default_factory=lambda: os.environ.get("NODEWATCH_CONFIG", "nodewatch.yaml")
    )
    poll_interval: int = field(default_factory=lambda: _int_env("NODEWATCH_POLL_INTERVAL", 60))
    kubeconfig: str | None = field(default_factory=lambda: os.environ.get("NODEWATCH_KUBECONFIG"))
    kube_context: str | None = field(
        default_factory=lambda: os.environ.get("NODEWATCH_KUBE_CONTEXT")
    )
    fetch_timeout: int = field(default_factory=lambda: _int_env("NODEWATCH_FETCH_TIMEOUT", 30))

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise ConfigError(f"poll interval must be positive, got {self.poll_interval}")


def get_settings() -> Settings:
    return Settings()


@dataclass
class WatchConfig:
    """Parsed watch file: alerters plus the node alert specs, in file order."""

    alerters: AlertersConfig = field(default_factory=AlertersConfig)
    nodes: list[NodeAlertSpec] = field(default_factory=list)

    @classmethod
    def load(cls, path: Path | str) -> WatchConfig:
        file_path = Path(path)
        if not file_path.exists():
            raise ConfigError(f"config file not found: {file_path}")
        try:
            raw = yaml.safe_load(file_path.read_text())
        except yaml.YAMLError as err:
            raise ConfigError(f"{file_path}: invalid YAML: {err}") from err
        return cls.from_dict(raw)

    @classmethod
    def from_dict(cls, raw: Any) -> WatchConfig:
        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            raise ConfigError("config root must be a mapping")
        unknown = set(raw) - {"alerters", "nodes"}
        if unknown:
            raise ConfigError(f"unknown top-level keys: {sorted(unknown)}")

        raw_nodes = raw.get("nodes") or []
        if not isinstance(raw_nodes, list):
            raise ConfigError("'nodes' must be a list of node alert specs")
        return cls(
            alerters=AlertersConfig.from_dict(raw.get("alerters")),
            nodes=[_parse_spec(i, entry) for i, entry in enumerate(raw_nodes)],
        )


def _parse_spec(index: int, raw: Any) -> NodeAlertSpec:
    where = f"nodes[{index}]"
    if not isinstance(raw, dict):
        raise ConfigError(f"{where} must be a mapping")
    unknown = set(raw) - _SPEC_KEYS
    if unknown:
        raise ConfigError(f"{where}: unknown keys {sorted(unknown)}")
    if not raw.get("alerter_type"):
        raise ConfigError(f"{where}: 'alerter_type' is required")

    kwargs: dict[str, Any] = {}
    for key in ("name", "node_filter", "alerter_type", "alerter_name"):
        if key in raw and raw[key] is not None:
            if not isinstance(raw[key], str):
                raise ConfigError(f"{where}.{key} must be a string")
            kwargs[key] = raw[key]
    if kwargs.get("name", WILDCARD) == "":
        raise ConfigError(f"{where}.name must be a node name or {WILDCARD!r}")
    kwargs["report_status"] = _parse_report_status(where, raw.get("report_status"))
    return NodeAlertSpec(**kwargs)


def _parse_report_status(where: str, raw: Any) -> ReportStatus:
    if raw is None:
        return ReportStatus()
    if not isinstance(raw, dict):
        raise ConfigError(f"{where}.report_status must be a mapping")

    types = {f.name: f.type for f in fields(ReportStatus)}
    unknown = set(raw) - set(types)
    if unknown:
        raise ConfigError(f"{where}.report_status: unknown keys {sorted(unknown)}")

    kwargs: dict[str, Any] = {}
    for key, value in raw.items():
        # Field types are strings under postponed annotations.
        if types[key] == "bool":
            if not isinstance(value, bool):
                raise ConfigError(f"{where}.report_status.{key} must be true or false")
        elif isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"{where}.report_status.{key} must be an integer")
        elif value < 0:
            raise ConfigError(f"{where}.report_status.{key} must not be negative")
        kwargs[key] = value
    return ReportStatus(**kwargs)
