"""Centralized logging configuration.

This module provides:
- PlainFormatter for human-readable stderr output
- JSONFormatter for structured, one-object-per-line output
- setup_logging() to configure the root logger at startup

Log messages use a "[TAG] message" convention; JSONFormatter lifts the tag
into its own field.
"""

import json
import logging
import re
import sys

_TAG_PATTERN = re.compile(r'\[([A-Z_]+)\]\s*(.*)', re.DOTALL)


def split_tag(message: str) -> tuple:
    """Split "[TAG] message" into (tag, message). Tag is None if absent."""
    tag_match = _TAG_PATTERN.match(message)
    if tag_match:
        return tag_match.group(1), tag_match.group(2)
    return None, message


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def __init__(self, service_name: str = None):
        super().__init__()
        self.service_name = service_name or "unknown"

    def format(self, record: logging.LogRecord) -> str:
        tag, message = split_tag(record.getMessage())

        # Build structured log entry
        log_entry = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "service": self.service_name,
            "level": record.levelname,
            "tag": tag,
            "message": message,
            "module": record.module,
            "extra": {
                "function": record.funcName,
                "line": record.lineno,
            }
        }

        # Add exception info if present
        if record.exc_info:
            log_entry["extra"]["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


class PlainFormatter(logging.Formatter):
    """Plain text formatter for stderr output (local debugging)."""

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )


def setup_logging(
    service_name: str = "mock-oauth-server",
    level: str = "INFO",
    json_output: bool = False,
) -> logging.Logger:
    """Configure the root logger.

    Args:
        service_name: Name stamped on structured log entries.
        level: Log level name for the root logger and its handler.
        json_output: Emit JSONFormatter lines instead of plain text.

    Returns:
        Configured root logger.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    # Get root logger and clear existing handlers
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(log_level)
    stderr_handler.setFormatter(JSONFormatter(service_name) if json_output else PlainFormatter())
    root_logger.addHandler(stderr_handler)

    # Suppress noisy HTTP client and per-request access logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"[STARTUP] Logging configured (level: {logging.getLevelName(log_level)}, json: {json_output})")

    return root_logger
