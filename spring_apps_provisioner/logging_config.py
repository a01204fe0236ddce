"""Structured logging configuration (JSON or text format)."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

from .config import LoggingConfig

HTTP_LOGGING_POLICY_LOGGER = "azure.core.pipeline.policies.http_logging_policy"
NETWORK_TRACE_LOGGER = "azure.core.pipeline.policies._universal"

_EXTRA_FIELDS = (
    "resource_group", "service", "app", "deployment", "build_result_id", "elapsed_seconds",
)


class JSONFormatter(logging.Formatter):
    """Emits log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                payload[key] = val

        if record.exc_info and record.exc_info[1]:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable format for interactive runs."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def configure_logging(config: LoggingConfig, http_logging: bool = False) -> None:
    """Set up the root logger based on configuration."""
    root = logging.getLogger()
    level = getattr(logging, config.level.upper(), logging.INFO)
    root.setLevel(level)

    # Remove existing handlers
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    if config.format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter())

    root.addHandler(handler)

    # Suppress noisy loggers
    for noisy in ("azure", "urllib3", "msal", "azure.identity", "azure.core"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    # logging_enable writes the network trace (headers and bodies) at DEBUG
    trace_level = level if http_logging and level <= logging.DEBUG else logging.WARNING
    for name in (HTTP_LOGGING_POLICY_LOGGER, NETWORK_TRACE_LOGGER):
        logging.getLogger(name).setLevel(trace_level)
