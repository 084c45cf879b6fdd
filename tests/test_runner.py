"""Tests for the CLI entry point (runner.py)."""

from __future__ import annotations

from pathlib import Path

import pytest

import runner
from contracts.errors import QueryError
from infra.config import Settings, clear_settings_cache
from tests.graph_mocks import FakeGraphSession


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    for key in (
        "OUTPUT_PATH",
        "INCLUDE_COMPLIANCE",
        "INCLUDE_RECOMMENDATIONS",
        "DATE_SUFFIX",
        "AZURE_SUBSCRIPTION_ID",
        "POSTURE_LOG_FILE",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()


def test_build_run_config_defaults() -> None:
    args = runner._parse_args([])
    cfg = runner.build_run_config(args, Settings.from_env(env={}, env_file=".missing.env"))

    assert cfg.output_path == Path("./Reports")
    assert cfg.subscription_selector is None
    assert cfg.include_compliance is False
    assert cfg.include_recommendations is False
    assert cfg.date_suffix is False


def test_cli_flags_override_settings() -> None:
    settings = Settings.from_env(
        env={"OUTPUT_PATH": "env-out", "AZURE_SUBSCRIPTION_ID": "env-sub", "INCLUDE_COMPLIANCE": "1"},
        env_file=".missing.env",
    )
    args = runner._parse_args(
        ["--output-path", "cli-out", "--subscription", "cli-sub", "--include-recommendations", "--date-suffix"]
    )

    cfg = runner.build_run_config(args, settings)

    assert cfg.output_path == Path("cli-out")
    assert cfg.subscription_selector == "cli-sub"
    assert cfg.include_compliance is True
    assert cfg.include_recommendations is True
    assert cfg.date_suffix is True


def test_main_success_exit_code(tmp_path: Path) -> None:
    out = tmp_path / "reports"
    code = runner.main(
        ["--output-path", str(out), "--include-compliance"],
        session=FakeGraphSession(default_rows=1),
    )

    assert code == 0
    assert len(list(out.glob("*.csv"))) == 7
    log_lines = (out / "SecurityExport.log").read_text(encoding="utf-8").splitlines()
    assert any("[Success] Export completed" in line for line in log_lines)


def test_main_failure_exit_code_and_last_log_line(tmp_path: Path) -> None:
    out = tmp_path / "reports"
    log_file = tmp_path / "custom.log"
    session = FakeGraphSession(default_rows=1, fail_on={"secure_score_controls": QueryError("denied")})

    code = runner.main(["--output-path", str(out), "--log-file", str(log_file)], session=session)

    assert code == 1
    last = log_file.read_text(encoding="utf-8").splitlines()[-1]
    assert "[Error]" in last
    assert "Secure Score Controls" in last


def test_print_version(capsys: pytest.CaptureFixture[str]) -> None:
    assert runner.main(["--print-version"]) == 0
    assert "ENGINE_NAME=postureexport" in capsys.readouterr().out


def test_main_unwritable_output_path_fails_prepare_step(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    code = runner.main(["--output-path", str(blocker / "out")], session=FakeGraphSession(default_rows=1))

    assert code == 1
    out_lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    assert "Log file" in "\n".join(out_lines)
    assert "Prepare Output" in out_lines[-1]
