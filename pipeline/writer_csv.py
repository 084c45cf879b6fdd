"""CSV writer for resource graph result sets.

This is the storage boundary: it turns one result set (a list of loosely-typed
rows) into one delimited file. The writer is deterministic (same rows produce
the same bytes) and each export replaces its target atomically.

Rows are not normalized to a schema. The header is the union of the columns
seen across all rows, in first-seen order; cells a row does not carry are left
empty.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import os
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

from contracts.errors import ExportIOError, SerializationError
from contracts.export_contracts import ExportJob, ExportOutcome
from infra.logging_config import log_success


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return str(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def format_cell(value: Any) -> str:
    """Render one cell value as text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=_json_default)
    return str(value)


def column_union(rows: Sequence[Mapping[str, Any]]) -> List[str]:
    """Union of row keys, in first-seen order."""
    seen: Dict[str, None] = {}
    for row in rows:
        if not isinstance(row, Mapping):
            raise TypeError(f"row must be a mapping (got {type(row).__name__})")
        for key in row.keys():
            seen.setdefault(str(key), None)
    return list(seen)


@dataclass(frozen=True)
class CsvWriterConfig:
    encoding: str = "utf-8"
    delimiter: str = ","
    lineterminator: str = "\n"


class CsvExporter:
    """
    Writes one result set per call to a CSV file.

    Behavior:
      - Empty result set: informational log line, no file, no error
      - Otherwise: parent directory created, rows rendered to text, written to
        ``<target>.tmp`` then moved over the target, size re-read for the
        confirmation line
      - Directory/write failures raise ExportIOError; cell rendering failures
        raise SerializationError
    """

    def __init__(self, logger: logging.Logger, config: CsvWriterConfig | None = None) -> None:
        self._log = logger
        self._cfg = config or CsvWriterConfig()

    def export(self, rows: Sequence[Mapping[str, Any]], path: Path, label: str) -> ExportOutcome:
        target = Path(path)
        if not rows:
            self._log.info("No %s data to export, skipping %s", label, target.name)
            return ExportOutcome(label=label, path=target, rows=0, size_bytes=0, written=False)

        payload = self._render(rows, label=label)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ExportIOError(f"Cannot create directory {target.parent}: {exc}", step=label) from exc

        tmp = target.with_name(target.name + ".tmp")
        try:
            tmp.write_bytes(payload)
            tmp.replace(target)
            size = target.stat().st_size
        except OSError as exc:
            if tmp.exists():
                os.remove(tmp)
            raise ExportIOError(f"Cannot write {target}: {exc}", step=label) from exc

        log_success(self._log, "Exported %d %s records to %s (%d bytes)", len(rows), label, target, size)
        return ExportOutcome(label=label, path=target, rows=len(rows), size_bytes=size, written=True)

    def export_job(self, job: ExportJob) -> ExportOutcome:
        return self.export(job.rows, job.path, job.label)

    def _render(self, rows: Sequence[Mapping[str, Any]], *, label: str) -> bytes:
        buf = io.StringIO()
        writer = csv.writer(
            buf,
            delimiter=self._cfg.delimiter,
            lineterminator=self._cfg.lineterminator,
            quoting=csv.QUOTE_MINIMAL,
        )
        try:
            columns = column_union(rows)
            writer.writerow(columns)
            for row in rows:
                writer.writerow([format_cell(row.get(col)) for col in columns])
            return buf.getvalue().encode(self._cfg.encoding)
        except (TypeError, ValueError, csv.Error) as exc:
            raise SerializationError(f"Cannot serialize {label}: {exc}", step=label) from exc
