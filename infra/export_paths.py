"""Path and file naming conventions for export output.

All code that needs to know where an export file lives should go through
:class:`infra.export_paths.ExportPaths`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

DATE_SUFFIX_FORMAT = "%Y%m%d_%H%M%S"

# Base names of every file a run can produce, in pipeline order.
BASE_NAMES: tuple[str, ...] = (
    "SecureScores",
    "SecureScoreControls",
    "SecurityAssessments",
    "SecurityRecommendations",
    "ComplianceStandards",
    "ComplianceControls",
    "ComplianceAssessments",
    "ExportSummary",
)

SUMMARY_BASE_NAME = "ExportSummary"
LOG_FILE_NAME = "SecurityExport.log"
PROBE_FILE_NAME = ".write_probe"


def _p(path: str | Path) -> Path:
    return path if isinstance(path, Path) else Path(str(path))


@dataclass(frozen=True)
class ExportPaths:
    """
    Central naming rules for one run's output files.

    Rules:
      - Every file lives directly under ``output_dir``
      - Name is ``{BaseName}.csv`` or ``{BaseName}_{yyyyMMdd_HHmmss}.csv``
      - The suffix comes from the single run timestamp, so one run's files
        share it
    """

    output_dir: Path
    run_ts: datetime | None = None
    date_suffix: bool = False
    extension: str = ".csv"

    def __post_init__(self) -> None:
        if not isinstance(self.output_dir, Path):
            raise TypeError(f"output_dir must be a pathlib.Path (got {type(self.output_dir)})")
        if self.date_suffix and self.run_ts is None:
            raise ValueError("run_ts is required when date_suffix is enabled")
        if not self.extension.startswith("."):
            raise ValueError(f"extension must start with '.': {self.extension!r}")

    def suffix(self) -> str:
        if not self.date_suffix or self.run_ts is None:
            return ""
        return "_" + self.run_ts.strftime(DATE_SUFFIX_FORMAT)

    def file_for(self, base_name: str) -> Path:
        name = str(base_name or "").strip()
        if not name:
            raise ValueError("base_name must be a non-empty string")
        if "/" in name or "\\" in name:
            raise ValueError(f"base_name must be a simple file name, not a path: {name!r}")
        return self.output_dir / f"{name}{self.suffix()}{self.extension}"

    def summary_file(self) -> Path:
        return self.file_for(SUMMARY_BASE_NAME)

    def probe_file(self) -> Path:
        return self.output_dir / PROBE_FILE_NAME

    def default_log_file(self) -> Path:
        return self.output_dir / LOG_FILE_NAME

    @classmethod
    def for_run(
        cls,
        output_dir: str | Path,
        *,
        run_ts: datetime,
        date_suffix: bool,
    ) -> ExportPaths:
        return cls(output_dir=_p(output_dir), run_ts=run_ts, date_suffix=bool(date_suffix))
