from datetime import datetime
from pathlib import Path

import pytest

from infra.export_paths import BASE_NAMES, ExportPaths

RUN_TS = datetime(2026, 3, 5, 7, 8, 9)


def test_plain_names_without_suffix() -> None:
    p = ExportPaths.for_run("out", run_ts=RUN_TS, date_suffix=False)
    assert p.file_for("SecureScores") == Path("out") / "SecureScores.csv"
    assert p.summary_file() == Path("out") / "ExportSummary.csv"


def test_date_suffix_uses_run_timestamp() -> None:
    p = ExportPaths.for_run(Path("out"), run_ts=RUN_TS, date_suffix=True)
    assert p.file_for("ComplianceControls") == Path("out") / "ComplianceControls_20260305_070809.csv"
    assert p.summary_file().name == "ExportSummary_20260305_070809.csv"


def test_all_base_names_are_distinct() -> None:
    p = ExportPaths(Path("out"))
    names = {p.file_for(b).name for b in BASE_NAMES}
    assert len(names) == 8


def test_rejects_path_in_base_name() -> None:
    with pytest.raises(ValueError):
        ExportPaths(Path("out")).file_for("../SecureScores")


def test_suffix_requires_timestamp() -> None:
    with pytest.raises(ValueError):
        ExportPaths(Path("out"), date_suffix=True)


def test_rejects_non_path_output_dir() -> None:
    with pytest.raises(TypeError):
        ExportPaths("out")  # type: ignore[arg-type]


def test_probe_and_log_live_in_output_dir() -> None:
    p = ExportPaths(Path("out"))
    assert p.probe_file().parent == Path("out")
    assert p.default_log_file() == Path("out") / "SecurityExport.log"
