"""Logging configuration, env-var driven.

All settings have safe defaults: structured JSON to stderr at INFO.

    Formatter:   NODEWATCH_LOG_FORMATTER=structlog (default) | stdlib
    Destination: NODEWATCH_LOG_DESTINATION=stderr (default) | jsonl
    Renderer:    NODEWATCH_LOG_FORMAT=json (default) | console
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass
class ObservabilityConfig:
    """Logging configuration, env-var driven."""

    log_formatter: str = field(
        default_factory=lambda: os.environ.get("NODEWATCH_LOG_FORMATTER", "structlog")
    )  # "structlog" | "stdlib"

    log_destination: str = field(
        default_factory=lambda: os.environ.get("NODEWATCH_LOG_DESTINATION", "stderr")
    )  # "stderr" | "jsonl"

    log_level: str = field(
        default_factory=lambda: os.environ.get("NODEWATCH_LOG_LEVEL", "INFO")
    )

    log_format: str = field(
        default_factory=lambda: os.environ.get("NODEWATCH_LOG_FORMAT", "json")
    )  # "json" | "console"

    # JSONL file destination
    jsonl_path: str | None = field(
        default_factory=lambda: os.environ.get("NODEWATCH_LOG_PATH")
    )
