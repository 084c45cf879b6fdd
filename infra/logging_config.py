"""Centralized logging configuration.

The export run writes two streams:
- an append-only log file, one line per event:
  ``[yyyy-MM-dd HH:mm:ss] [Level] Message``
- human-friendly (or JSON) console output

Instead of mutating the root logger, :func:`build_run_logger` returns a
dedicated logger instance that callers pass explicitly into the pipeline and
the exporter.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from infra.config import get_settings

# Between INFO (20) and WARNING (30): confirmation of a completed write.
SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

# Log-file level names.
_FILE_LEVEL_NAMES = {
    logging.DEBUG: "Debug",
    logging.INFO: "Info",
    SUCCESS: "Success",
    logging.WARNING: "Warning",
    logging.ERROR: "Error",
    logging.CRITICAL: "Error",
}


def log_success(logger: logging.Logger, message: str, *args: Any) -> None:
    """Log *message* at the SUCCESS level."""
    logger.log(SUCCESS, message, *args)


def _utc_iso8601() -> str:
    # Example: 2026-01-24T18:03:12.123Z
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class LogFileFormatter(logging.Formatter):
    """
    ``[2026-01-24 18:03:12] [Info] message`` in local time.
    """

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        level = _FILE_LEVEL_NAMES.get(record.levelno, record.levelname.capitalize())
        line = f"[{self.formatTime(record, self.datefmt)}] [{level}] {record.getMessage()}"
        if record.exc_info:
            # Keep one line per event.
            exc = self.formatException(record.exc_info).splitlines()
            if exc:
                line = f"{line} ({exc[-1]})"
        return line


class JsonFormatter(logging.Formatter):
    """
    Safe JSON formatter:
      - Always outputs valid JSON (message escaped via json.dumps)
      - Adds common infra fields
      - Includes exception info when present
    """

    def __init__(self, *, extra_fields: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        self._extra_fields = dict(extra_fields or {})

    def format(self, record: logging.LogRecord) -> str:
        base: dict[str, Any] = {
            "timestamp": _utc_iso8601(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "func": record.funcName,
            "line": record.lineno,
        }

        for k, v in self._extract_extras(record).items():
            if k not in base:
                base[k] = v

        # Always-on extra fields (eg tool=..., tenant=...)
        for k, v in self._extra_fields.items():
            base.setdefault(k, v)

        if record.exc_info:
            base["exception"] = self.formatException(record.exc_info)

        return json.dumps(base, ensure_ascii=False, default=str)

    @staticmethod
    def _extract_extras(record: logging.LogRecord) -> dict[str, Any]:
        # Heuristic: anything not in standard LogRecord attributes is "extra"
        standard = {
            "name", "msg", "args", "levelname", "levelno", "pathname", "filename", "module",
            "exc_info", "exc_text", "stack_info", "lineno", "funcName", "created", "msecs",
            "relativeCreated", "thread", "threadName", "processName", "process", "taskName",
            "message", "asctime",
        }
        extras: dict[str, Any] = {}
        for key, value in record.__dict__.items():
            if key not in standard:
                extras[key] = value
        return extras


class TextFormatter(logging.Formatter):
    """
    Human-friendly logs, but UTC timestamps.
    """
    converter = time.gmtime  # UTC

    def __init__(self) -> None:
        super().__init__("%(asctime)sZ | %(levelname)s | %(message)s")


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    json_logs: bool = False
    log_file: Path | None = None
    console: bool = True
    extra_fields: Mapping[str, Any] | None = None


def build_run_logger(
    name: str = "postureexport",
    *,
    level: str | None = None,
    json_logs: bool | None = None,
    log_file: str | Path | None = None,
    console: bool = True,
    extra_fields: Mapping[str, Any] | None = None,
) -> logging.Logger:
    """
    Build the logger instance for one export run.

    Env vars (via infra.config):
      - POSTURE_LOG_LEVEL: DEBUG|INFO|WARNING|ERROR (default INFO)
      - POSTURE_LOG_JSON:  1/0 (default 0), console output only
      - POSTURE_LOG_FILE:  path of the append-only log file

    Note:
      - The returned logger does not propagate to root; handlers set up by a
        previous call with the same name are replaced.
      - The log file is opened in append mode and never truncated or rotated.
      - If the log file cannot be opened the logger falls back to console
        output and logs a warning instead of raising.
    """
    settings = get_settings().logging

    file_path = log_file if log_file is not None else settings.log_file
    cfg = LoggingConfig(
        level=(level or settings.level).upper(),
        json_logs=json_logs if json_logs is not None else bool(settings.json_logs),
        log_file=Path(file_path) if file_path else None,
        console=console,
        extra_fields=extra_fields,
    )

    logger = logging.getLogger(name)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.setLevel(getattr(logging, cfg.level, logging.INFO))
    logger.propagate = False

    if cfg.console:
        console_handler = logging.StreamHandler(sys.stdout)
        if cfg.json_logs:
            console_handler.setFormatter(JsonFormatter(extra_fields=cfg.extra_fields))
        else:
            console_handler.setFormatter(TextFormatter())
        logger.addHandler(console_handler)

    if cfg.log_file is not None:
        try:
            cfg.log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(cfg.log_file, mode="a", encoding="utf-8")
        except OSError as exc:
            # Console only; an unwritable output directory is reported by the run itself.
            if not logger.handlers:
                logger.addHandler(logging.StreamHandler(sys.stderr))
            logger.warning("Log file %s is unavailable, logging to console only: %s", cfg.log_file, exc)
        else:
            file_handler.setFormatter(LogFileFormatter())
            logger.addHandler(file_handler)

    # Common noisy libs
    logging.getLogger("azure").setLevel(logging.WARNING)
    logging.getLogger("azure.identity").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return logger


def close_run_logger(logger: logging.Logger) -> None:
    """Flush and detach all handlers of *logger*."""
    for h in list(logger.handlers):
        h.flush()
        logger.removeHandler(h)
        h.close()
