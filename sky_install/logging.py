"""Structured logging helpers: JSON lines on stderr."""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.threadName and record.threadName != "MainThread":
            payload["thread"] = record.threadName
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def get_logger(name: str = "sky_install") -> logging.Logger:
    # Children ("sky_install.jobs") propagate to the configured root logger.
    logger = logging.getLogger(name)
    root = logging.getLogger(name.split(".", 1)[0])
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(JsonFormatter())
        root.addHandler(handler)
        root.setLevel(logging.WARNING)
    return logger


def set_verbosity(verbose: bool) -> None:
    logging.getLogger("sky_install").setLevel(logging.INFO if verbose else logging.WARNING)
