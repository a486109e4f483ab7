"""Structured logging helpers: JSON lines with context, plus labeled user lines."""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

LOGGER_NAME = "functions_discovery"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        label = getattr(record, "label", None)
        if label:
            payload["label"] = label
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def set_verbose(verbose: bool = True) -> None:
    get_logger().setLevel(logging.DEBUG if verbose else logging.INFO)


def log_labeled_success(label: str, message: str) -> None:
    get_logger().info("%s: %s", label, message, extra={"label": label})


def log_labeled_warning(label: str, message: str) -> None:
    get_logger().warning("%s: %s", label, message, extra={"label": label})
