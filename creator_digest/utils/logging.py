"""
Run logging: rich console output plus a per-run JSONL (or plain) file.

Every record emitted under the ``creator_digest`` logger tree during a run
carries the run id, so lines from the parser, validation and the runner can
be joined with the digest.json they produced.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from rich.logging import RichHandler

from ..config import LoggingConfig

LOGGER_NAME = "creator_digest"
NO_RUN = "-"

_RESERVED_ATTRS = frozenset(
    {
        "name",
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
        "message",
        "asctime",
    }
)


class RunContextFilter(logging.Filter):
    """Stamp the current run id on every record passing a handler."""

    def __init__(self, run_id: str | None):
        super().__init__()
        self.run_id = run_id or NO_RUN

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "run_id", None):
            record.run_id = self.run_id
        return True


def setup_logging(
    cfg: LoggingConfig, run_output_dir: Path | None, run_id: str | None = None
) -> logging.Logger:
    """Install fresh handlers on the package logger for one run.

    Handlers replace any left over from a previous run. The file handler is
    only created when file logging is enabled and an output directory is given.
    """
    level = _level_from_string(cfg.level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers = []
    logger.propagate = False

    handlers: list[logging.Handler] = []
    if cfg.console:
        console_handler = RichHandler(rich_tracebacks=True, show_time=False, show_level=True)
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        handlers.append(console_handler)
    if cfg.file and run_output_dir is not None:
        run_output_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(run_output_dir / cfg.filename, encoding="utf-8")
        file_handler.setFormatter(_build_file_formatter(cfg.format))
        handlers.append(file_handler)

    context = RunContextFilter(run_id)
    for handler in handlers:
        handler.setLevel(level)
        handler.addFilter(context)
        logger.addHandler(handler)
    return logger


def close_logging(logger: logging.Logger) -> None:
    """Flush and detach the handlers installed by setup_logging."""
    for handler in list(logger.handlers):
        handler.flush()
        handler.close()
        logger.removeHandler(handler)


def log_event(logger: logging.Logger | None, message: str, **fields: Any) -> None:
    """Log a structured INFO event.

    Field names that clash with LogRecord attributes are prefixed with
    ``field_`` instead of making the logging call fail.
    """
    if logger is None:
        return
    extra = {(f"field_{key}" if key in _RESERVED_ATTRS else key): value for key, value in fields.items()}
    logger.info(message, extra=extra)


class JsonlFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_extract_extras(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


def _extract_extras(record: logging.LogRecord) -> dict[str, Any]:
    return {key: value for key, value in record.__dict__.items() if key not in _RESERVED_ATTRS}


def _build_file_formatter(fmt: str) -> logging.Formatter:
    if fmt == "jsonl":
        return JsonlFormatter()
    return logging.Formatter("%(asctime)s %(levelname)s [%(run_id)s] %(name)s: %(message)s")


def _level_from_string(level: str | int) -> int:
    if isinstance(level, int):
        return level
    value = getattr(logging, str(level).upper(), None)
    return value if isinstance(value, int) else logging.INFO
