"""
export_pipeline.py

Security posture export pipeline (session -> queries -> CSV files -> summary).

Steps, strictly ordered:
  1. validate environment (client prerequisites + authenticated session)
  2. bind subscription (only when a selector is configured)
  3. prepare output directory (create + write/delete a probe file)
  4. secure scores, secure score controls, assessments
  5. recommendations            (include_recommendations)
  6. compliance standards, controls, assessments (include_compliance)
  7. export summary

Every step returns a StepResult. The first failed step stops the pipeline and
the run ends in FAILED; nothing is retried. The summary is the only step whose
failure is logged and ignored.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from contracts.errors import ExportIOError, PostureExportError, QueryError
from contracts.export_contracts import (
    ExportJob,
    RunConfig,
    RunResult,
    RunState,
    StepResult,
)
from contracts.interfaces import GraphSession, SessionContext
from infra.export_paths import ExportPaths
from infra.logging_config import log_success
from pipeline.queries import QueryDefinition, catalog
from pipeline.summary import emit_summary
from pipeline.writer_csv import CsvExporter

STEP_VALIDATE = "Validate Environment"
STEP_BIND = "Bind Subscription"
STEP_PREPARE = "Prepare Output"


def _local_now() -> datetime:
    return datetime.now()


class ExportPipeline:
    """Runs one export end to end.

    The session, exporter and logger are injected so tests can drive the
    pipeline with in-memory doubles. ``clock`` supplies the run timestamp used
    for the file date suffix and the summary row.
    """

    def __init__(
        self,
        *,
        session: GraphSession,
        logger: logging.Logger,
        exporter: CsvExporter | None = None,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self._session = session
        self._log = logger
        self._exporter = exporter or CsvExporter(logger)
        self._clock = clock

    def run(self, config: RunConfig) -> RunResult:
        result = RunResult(run_ts=self._clock())
        paths = ExportPaths.for_run(config.output_path, run_ts=result.run_ts, date_suffix=config.date_suffix)

        self._log.info("Starting security posture export to %s", config.output_path)

        result.transition(RunState.VALIDATING_ENVIRONMENT)
        step, context = self._validate_environment()
        if not step.ok:
            return self._abort(result, step)
        result.steps.append(step)

        result.transition(RunState.BINDING_SUBSCRIPTION)
        step, _ = self._bind_subscription(config, context)
        if not step.ok:
            return self._abort(result, step)
        result.steps.append(step)

        result.transition(RunState.PREPARING_OUTPUT)
        step = self._prepare_output(paths)
        if not step.ok:
            return self._abort(result, step)
        result.steps.append(step)

        result.transition(RunState.EXPORTING)
        queries = catalog(
            include_recommendations=config.include_recommendations,
            include_compliance=config.include_compliance,
        )
        for query in queries:
            step = self._export_query(query, paths)
            if not step.ok:
                return self._abort(result, step)
            result.steps.append(step)
            if step.outcome is not None:
                result.outcomes.append(step.outcome)

        result.transition(RunState.SUMMARIZING)
        result.summary_outcome = emit_summary(
            self._exporter,
            config=config,
            context=self._session.context(),
            paths=paths,
            run_ts=result.run_ts,
            logger=self._log,
        )

        result.transition(RunState.COMPLETED)
        written = sum(1 for o in result.outcomes if o.written)
        log_success(
            self._log,
            "Export completed: %d of %d data files written to %s",
            written,
            len(result.outcomes),
            config.output_path,
        )
        return result

    # -------------------------
    # Steps
    # -------------------------

    def _validate_environment(self) -> tuple[StepResult, SessionContext]:
        self._log.info("Validating environment")
        try:
            context = self._session.validate_environment()
        except PostureExportError as exc:
            return StepResult.failure(STEP_VALIDATE, exc), SessionContext()
        self._log.info("Authenticated to tenant %s", context.tenant_id or "<unknown>")
        return StepResult.success(STEP_VALIDATE), context

    def _bind_subscription(
        self, config: RunConfig, context: SessionContext
    ) -> tuple[StepResult, SessionContext]:
        selector = config.subscription_selector
        if not selector:
            self._log.info("No subscription selector given, using current context")
            return StepResult.success(STEP_BIND), context

        self._log.info("Selecting subscription %s", selector)
        try:
            bound = self._session.bind_subscription(selector)
        except PostureExportError as exc:
            return StepResult.failure(STEP_BIND, exc), context
        self._log.info(
            "Using subscription %s (%s)", bound.subscription_name or "<unnamed>", bound.subscription_id
        )
        return StepResult.success(STEP_BIND), bound

    def _prepare_output(self, paths: ExportPaths) -> StepResult:
        output_dir = paths.output_dir
        probe = paths.probe_file()
        try:
            if not output_dir.exists():
                self._log.info("Creating output directory %s", output_dir)
            output_dir.mkdir(parents=True, exist_ok=True)
            probe.write_text("probe", encoding="utf-8")
            probe.unlink()
        except OSError as exc:
            err = ExportIOError(f"Output directory {output_dir} is not writable: {exc}")
            return StepResult.failure(STEP_PREPARE, err)
        return StepResult.success(STEP_PREPARE)

    def _export_query(self, query: QueryDefinition, paths: ExportPaths) -> StepResult:
        self._log.info("Querying %s", query.label)
        try:
            rows = self._session.query(query.text, first=query.row_cap)
            if not isinstance(rows, list):
                raise QueryError(f"Unexpected result type {type(rows).__name__} for {query.label}")
            self._warn_if_truncated(query, len(rows))
            job = ExportJob(rows=rows, path=paths.file_for(query.base_name), label=query.label)
            outcome = self._exporter.export_job(job)
        except PostureExportError as exc:
            return StepResult.failure(query.label, exc)
        return StepResult.success(query.label, outcome)

    def _warn_if_truncated(self, query: QueryDefinition, count: int) -> None:
        if count >= query.row_cap:
            self._log.warning(
                "%s returned %d records, the per-query limit; results may be truncated",
                query.label,
                count,
            )

    def _abort(self, result: RunResult, step: StepResult) -> RunResult:
        result.fail(step)
        detail = step.error.detail if step.error is not None else "unknown error"
        self._log.error("Export failed at step '%s': %s", step.label, detail)
        return result


def run_export(
    config: RunConfig,
    *,
    session: GraphSession,
    logger: logging.Logger,
    clock: Callable[[], datetime] = _local_now,
) -> RunResult:
    """Convenience wrapper: build an ExportPipeline and run it once."""
    return ExportPipeline(session=session, logger=logger, clock=clock).run(config)


def output_files(result: RunResult) -> list[Path]:
    """Paths of every file a run actually wrote, summary included."""
    files = [o.path for o in result.outcomes if o.written]
    if result.summary_outcome is not None and result.summary_outcome.written:
        files.append(result.summary_outcome.path)
    return files
