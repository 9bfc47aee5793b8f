"""
Logging utilities for dokosa.

Logs go to stderr so that command output on stdout stays machine readable.
Context fields (repository, file, command) are attached with ``extra=`` and
rendered by both formatters.
"""

import json
import logging
import sys
from datetime import datetime, timezone


CONTEXT_FIELDS = ("command", "repository", "file")


class StructuredFormatter(logging.Formatter):
    """
    Formatter that outputs JSON-structured log lines.

    Each log line includes:
    - Standard log fields (timestamp, level, message, logger)
    - Context fields if present (command, repository, file)
    """

    def __init__(self, include_timestamp: bool = True):
        super().__init__()
        self.include_timestamp = include_timestamp

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_entry = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_timestamp:
            log_entry["timestamp"] = datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat()

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Formatter that outputs human-readable log lines with context.

    Format: TIMESTAMP - LOGGER - LEVEL - MESSAGE [repository=X file=Y]
    """

    def __init__(self, include_timestamp: bool = True):
        if include_timestamp:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            fmt = "%(name)s - %(levelname)s - %(message)s"
        super().__init__(fmt)

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with context suffix."""
        base = super().format(record)

        context_parts = []
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                context_parts.append(f"{field}={value}")

        if context_parts:
            return f"{base} [{' '.join(context_parts)}]"
        return base


def configure_logging(
    level: int = logging.INFO,
    include_timestamp: bool = True,
    structured: bool = False,
) -> logging.Logger:
    """
    Configure the ``dokosa`` package logger.

    Only one handler is ever attached; calling this again just updates the
    level and formatter.

    Args:
        level: Logging level (default: INFO)
        include_timestamp: Whether to include timestamp in log messages
        structured: If True, output JSON-structured logs; if False, human-readable

    Returns:
        The configured package logger
    """
    package_logger = logging.getLogger("dokosa")
    package_logger.setLevel(level)

    if structured:
        formatter = StructuredFormatter(include_timestamp=include_timestamp)
    else:
        formatter = HumanReadableFormatter(include_timestamp=include_timestamp)

    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        package_logger.addHandler(handler)

    for handler in package_logger.handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    return package_logger
