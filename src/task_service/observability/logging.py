from __future__ import annotations

import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

LOG_FILE_NAME = "tasks.jsonl"

# Bound by AccessLogMiddleware for the lifetime of one request.
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Attributes every LogRecord carries; anything else came in through `extra`.
_RECORD_ATTRS = frozenset((
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
    "created", "msecs", "relativeCreated", "thread", "threadName", "processName",
    "process", "message", "taskName", "color_message",
))


def _utc_stamp(created: float) -> str:
    return datetime.fromtimestamp(created, timezone.utc).isoformat().replace("+00:00", "Z")


class JsonFormatter(logging.Formatter):
    """One JSON object per line: fixed header, request id, then `extra` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": _utc_stamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        request_id = request_id_var.get()
        if request_id is not None:
            payload["request_id"] = request_id

        payload.update((k, v) for k, v in record.__dict__.items() if k not in _RECORD_ATTRS)

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _attach(root: logging.Logger, handler: logging.Handler, level: str) -> None:
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)


def setup_logging(level: str = "INFO", log_dir: Optional[Path] = None) -> None:
    """Console always; rotating `tasks.jsonl` under log_dir when one is given."""
    level = level.upper()

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()  # create_app() may run more than once per process

    _attach(root, logging.StreamHandler(), level)
    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        _attach(
            root,
            RotatingFileHandler(log_dir / LOG_FILE_NAME, maxBytes=10_000_000, backupCount=10, encoding="utf-8"),
            level,
        )

    # AccessLogMiddleware replaces uvicorn's access log
    logging.getLogger("uvicorn.access").setLevel(logging.CRITICAL)
    logging.getLogger("uvicorn.error").setLevel(level)
