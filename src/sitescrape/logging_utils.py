"""Process-wide logging setup for the CLI.

Library code only ever calls ``logging.getLogger(__name__)`` (or uses a logger
handed to it); configuring handlers is left to the entry point.
"""

from __future__ import annotations

import json
import logging
import sys

PLAIN_FORMAT = "%(asctime)s %(levelname)-8s %(name)s — %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")


class JsonFormatter(logging.Formatter):
    """One JSON object per line: ``{"severity", "message", "logger", "time"}``."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "time": self.formatTime(record, DATE_FORMAT),
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Send log records to stderr, plain text or JSON lines.

    Records go to stderr so they never mix with records a ``ConsoleSink``
    writes to stdout.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt=DATE_FORMAT))

    logging.root.handlers.clear()
    logging.root.addHandler(handler)
    logging.root.setLevel(log_level)

    # Quieten noisy libraries
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
