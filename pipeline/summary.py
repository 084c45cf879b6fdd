"""Export summary row.

The summary is the last file of a run: one row describing when the export ran,
against which tenant/subscription, where it wrote and which optional sections
were included. Writing it is best-effort; a failure is logged and never fails
the run.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict

from contracts.errors import PostureExportError
from contracts.export_contracts import ExportOutcome, RunConfig
from contracts.interfaces import SessionContext
from infra.export_paths import ExportPaths
from pipeline.writer_csv import CsvExporter
from version import ENGINE_VERSION

SUMMARY_LABEL = "Export Summary"
SUMMARY_TS_FORMAT = "%Y-%m-%d %H:%M:%S"


def build_summary(config: RunConfig, context: SessionContext, run_ts: datetime) -> Dict[str, Any]:
    return {
        "ExportDate": run_ts.strftime(SUMMARY_TS_FORMAT),
        "TenantId": context.tenant_id,
        "SubscriptionId": context.subscription_id,
        "SubscriptionName": context.subscription_name,
        "OutputPath": str(config.output_path),
        "IncludeCompliance": bool(config.include_compliance),
        "IncludeRecommendations": bool(config.include_recommendations),
        "ToolVersion": ENGINE_VERSION,
    }


def emit_summary(
    exporter: CsvExporter,
    *,
    config: RunConfig,
    context: SessionContext,
    paths: ExportPaths,
    run_ts: datetime,
    logger: logging.Logger,
) -> ExportOutcome | None:
    """Write the summary file. Returns None if it could not be written."""
    try:
        row = build_summary(config, context, run_ts)
        return exporter.export([row], paths.summary_file(), SUMMARY_LABEL)
    except (PostureExportError, OSError, ValueError) as exc:
        logger.error("Failed to write %s: %s", SUMMARY_LABEL, exc)
        return None
