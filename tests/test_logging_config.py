"""Unit tests for the run logger and log file format."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from infra.logging_config import (
    SUCCESS,
    JsonFormatter,
    LogFileFormatter,
    build_run_logger,
    close_run_logger,
    log_success,
)

LINE_RE = re.compile(r"^\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] \[(Info|Warning|Error|Success|Debug)\] .+$")


def _record(level: int, msg: str) -> logging.LogRecord:
    return logging.LogRecord("t", level, __file__, 1, msg, None, None)


def test_file_formatter_level_names() -> None:
    fmt = LogFileFormatter()
    assert fmt.format(_record(logging.INFO, "hello")).endswith("[Info] hello")
    assert fmt.format(_record(logging.WARNING, "careful")).endswith("[Warning] careful")
    assert fmt.format(_record(logging.ERROR, "boom")).endswith("[Error] boom")
    assert fmt.format(_record(SUCCESS, "done")).endswith("[Success] done")
    assert LINE_RE.match(fmt.format(_record(logging.INFO, "hello")))


def test_run_logger_appends_to_log_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "export.log"
    log_file.parent.mkdir()
    log_file.write_text("[2026-01-01 00:00:00] [Info] earlier run\n", encoding="utf-8")

    logger = build_run_logger("tests.run_logger", level="INFO", log_file=log_file, console=False)
    logger.info("Querying %s", "Secure Scores")
    logger.warning("truncated")
    log_success(logger, "Exported %d records", 3)
    logger.debug("not shown")
    close_run_logger(logger)

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "[2026-01-01 00:00:00] [Info] earlier run"
    assert len(lines) == 4
    assert all(LINE_RE.match(line) for line in lines)
    assert lines[1].endswith("[Info] Querying Secure Scores")
    assert lines[2].endswith("[Warning] truncated")
    assert lines[3].endswith("[Success] Exported 3 records")


def test_run_logger_does_not_propagate_and_replaces_handlers(tmp_path: Path) -> None:
    first = build_run_logger("tests.isolated", log_file=tmp_path / "a.log", console=False)
    second = build_run_logger("tests.isolated", log_file=tmp_path / "b.log", console=True)

    assert first is second
    assert second.propagate is False
    assert len(second.handlers) == 2
    close_run_logger(second)
    assert second.handlers == []


def test_json_formatter_is_valid_json() -> None:
    fmt = JsonFormatter(extra_fields={"tool": "postureexport"})
    payload = json.loads(fmt.format(_record(logging.INFO, 'quote " inside')))
    assert payload["message"] == 'quote " inside'
    assert payload["tool"] == "postureexport"
    assert payload["level"] == "INFO"


def test_run_logger_falls_back_to_console_when_log_file_unavailable(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")

    logger = build_run_logger("tests.no_file", log_file=blocker / "logs" / "export.log", console=False)

    assert len(logger.handlers) == 1
    assert not isinstance(logger.handlers[0], logging.FileHandler)
    close_run_logger(logger)
