"""nodewatch observability: structured logging with swappable formatter x destination.

Public API:
    setup_logging(cfg)           : Wire the configured formatter/destination (call once at startup)
    get_logger(name)             : Structured logger, usable before setup
    shutdown_logging()           : Flush and close the active destination
    register_formatter(n, cls)   : Register a custom LogFormatter
    register_destination(n, cls) : Register a custom LogDestination
"""

from nodewatch.observability.config import ObservabilityConfig
from nodewatch.observability.logging import (
    LogDestination,
    LogFormatter,
    get_logger,
    register_destination,
    register_formatter,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "ObservabilityConfig",
    "LogDestination",
    "LogFormatter",
    "get_logger",
    "register_destination",
    "register_formatter",
    "setup_logging",
    "shutdown_logging",
]
