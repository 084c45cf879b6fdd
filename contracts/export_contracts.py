"""
export_contracts.py

Core data structures shared by the export pipeline.

- RunConfig:    immutable per-run configuration (built once from CLI + settings)
- ExportJob:    one serialize-and-write unit of work
- ExportOutcome: what the exporter reports back for one job
- StepResult:   tagged result of one pipeline step (ok / failed with error)
- RunResult:    the full record of one pipeline execution
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from .errors import PostureExportError

# Azure Resource Graph returns at most 1000 records per request.
ROW_CAP: int = 1000


@dataclass(frozen=True)
class RunConfig:
    """
    Immutable configuration for one pipeline execution.
    """
    output_path: Path = Path("./Reports")
    subscription_selector: str | None = None
    include_compliance: bool = False
    include_recommendations: bool = False
    date_suffix: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.output_path, Path):
            raise TypeError(f"output_path must be a pathlib.Path (got {type(self.output_path)})")
        if self.subscription_selector is not None and not str(self.subscription_selector).strip():
            raise ValueError("subscription_selector must be None or a non-empty string")


@dataclass(frozen=True)
class ExportJob:
    rows: list[dict[str, Any]]
    path: Path
    label: str


@dataclass(frozen=True)
class ExportOutcome:
    label: str
    path: Path
    rows: int = 0
    size_bytes: int = 0
    written: bool = False


class RunState(str, Enum):
    NOT_STARTED = "NotStarted"
    VALIDATING_ENVIRONMENT = "ValidatingEnvironment"
    BINDING_SUBSCRIPTION = "BindingSubscription"
    PREPARING_OUTPUT = "PreparingOutput"
    EXPORTING = "Exporting"
    SUMMARIZING = "Summarizing"
    COMPLETED = "Completed"
    FAILED = "Failed"


@dataclass(frozen=True)
class StepResult:
    """Tagged result of one step. ``ok=False`` stops the pipeline."""

    label: str
    ok: bool
    error: PostureExportError | None = None
    outcome: ExportOutcome | None = None

    @classmethod
    def success(cls, label: str, outcome: ExportOutcome | None = None) -> StepResult:
        return cls(label=label, ok=True, outcome=outcome)

    @classmethod
    def failure(cls, label: str, error: PostureExportError) -> StepResult:
        return cls(label=label, ok=False, error=error.with_step(label))


@dataclass
class RunResult:
    run_ts: datetime
    state: RunState = RunState.NOT_STARTED
    transitions: list[RunState] = field(default_factory=lambda: [RunState.NOT_STARTED])
    steps: list[StepResult] = field(default_factory=list)
    outcomes: list[ExportOutcome] = field(default_factory=list)
    failed_step: str = ""
    error: PostureExportError | None = None
    summary_outcome: ExportOutcome | None = None

    @property
    def ok(self) -> bool:
        return self.state is RunState.COMPLETED

    @property
    def export_jobs(self) -> int:
        """Number of export jobs emitted (data steps plus the summary, if any)."""
        jobs = len(self.outcomes)
        if self.summary_outcome is not None:
            jobs += 1
        return jobs

    def transition(self, state: RunState) -> None:
        self.state = state
        self.transitions.append(state)

    def fail(self, step: StepResult) -> None:
        self.steps.append(step)
        self.failed_step = step.label
        self.error = step.error
        self.transition(RunState.FAILED)


__all__ = [
    "ROW_CAP",
    "ExportJob",
    "ExportOutcome",
    "RunConfig",
    "RunResult",
    "RunState",
    "StepResult",
]
