"""nodewatch exception hierarchy."""

from __future__ import annotations

LIST_TARGET = "list"


class NodewatchError(Exception):
    """Base class for all nodewatch errors."""


class FetchError(NodewatchError):
    """A cluster fetch failed; aborts the current poll for one alert spec.

    ``target`` is the node name, or ``"list"`` for a label-selector listing.
    """

    def __init__(self, target: str, cause: str) -> None:
        self.target = target
        self.cause = cause
        if target == LIST_TARGET:
            message = f"Unable to get nodes: {cause}"
        else:
            message = f"Unable to get node {target}: {cause}"
        super().__init__(message)


class ConfigError(NodewatchError, ValueError):
    """Invalid configuration file or environment setting."""


class AlertDeliveryError(NodewatchError):
    """An alert backend rejected or failed to deliver a message."""
