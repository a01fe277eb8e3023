from __future__ import annotations

import logging
import os
import sys
import json
import time
from typing import Optional


class JsonFormatter(logging.Formatter):
    """
    Minimal JSON log formatter:
      { "t": 169, "lvl": "INFO", "name": "navigation.engine", "msg": "text", "extra": {...} }
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "t": int(time.time() * 1000),
            "lvl": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        # Structured fields are passed as extra={"extra": {...}}
        if hasattr(record, "extra") and isinstance(record.extra, dict):  # type: ignore[attr-defined]
            payload["extra"] = record.extra  # type: ignore[attr-defined]
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        # default=str keeps numpy scalars and enums loggable
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: Optional[str] = None, *, stream=None) -> None:
    """
    Configure the root logger once with JSON formatting.

    Level precedence:
      - explicit `level` arg
      - env LOG_LEVEL (DEBUG/INFO/WARNING/ERROR)
      - default INFO

    Logs go to stderr by default so the CLI can keep stdout for JSONL results.
    """
    root = logging.getLogger()
    if getattr(root, "_arnav_configured", False):  # idempotent
        if level:
            root.setLevel(_level_from_name(level))
        return

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JsonFormatter())

    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_level_from_name(level or os.environ.get("LOG_LEVEL") or "INFO"))
    root._arnav_configured = True  # type: ignore[attr-defined]


def _level_from_name(name: str) -> int:
    lvl = getattr(logging, name.upper(), None)
    return lvl if isinstance(lvl, int) else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Get a module logger; ensures root is configured."""
    setup_logging()
    return logging.getLogger(name)
