"""
Logging bootstrap for the CLI.

Console lines go to stderr through rich. When GAV_BOOTSTRAP_LOG_PATH is set a
JSONL sink receives the same records.
"""

import json
import logging
import os
from datetime import UTC
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOG_PATH_ENV = "GAV_BOOTSTRAP_LOG_PATH"

# LogRecord attributes that are not user supplied extras
_RECORD_FIELDS = frozenset(
    (
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "name",
        "message",
    )
)


class JsonlHandler(logging.Handler):
    def __init__(self, path: str):
        super().__init__()
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            base = {
                "ts": datetime.now(UTC).isoformat(timespec="milliseconds"),
                "lvl": record.levelname,
                "schema": {"name": "gav_bootstrap.log", "ver": "1.0.0"},
                "logger": record.name,
                "message": record.getMessage(),
            }
            for k, v in record.__dict__.items():
                if k in _RECORD_FIELDS:
                    continue
                base.setdefault(k, v if isinstance(v, str | int | float | bool | None) else repr(v))
            with self.path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(base, ensure_ascii=False) + "\n")
        except Exception:
            self.handleError(record)


def init_logging(level: str = "INFO", path: str | None = None, console: Console | None = None) -> None:
    """Configure the root logger for a bootstrap run.

    Args:
        level: Level name for the root logger
        path: JSONL sink path (default: $GAV_BOOTSTRAP_LOG_PATH, none if unset)
        console: Console for log lines (default: a stderr console)
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove handlers installed by an earlier call to avoid duplicates
    for h in list(root.handlers):
        if isinstance(h, JsonlHandler | RichHandler):
            root.removeHandler(h)

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(console_handler)

    path = path or os.environ.get(LOG_PATH_ENV)
    if path:
        root.addHandler(JsonlHandler(path))
