"""
runner.py

Security posture export runner (resource graph queries -> CSV files).

Exports Microsoft Defender for Cloud secure scores, secure score controls and
assessments to CSV, optionally with unhealthy recommendations and regulatory
compliance data, then writes one ExportSummary row describing the run.

Defaults come from infra/config.py (env vars or .env); CLI flags win.

Export the default set to ./Reports:
python runner.py

One subscription, everything, timestamped file names:
python runner.py --subscription "Production" --include-compliance --include-recommendations --date-suffix

Custom output directory and log file:
python runner.py --output-path /tmp/posture --log-file /var/log/posture/export.log
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from contracts.export_contracts import RunConfig
from contracts.interfaces import GraphSession
from infra.config import Settings, get_settings
from infra.export_paths import ExportPaths
from infra.logging_config import build_run_logger, close_run_logger
from pipeline.export_pipeline import ExportPipeline, output_files
from services.resource_graph import AzureGraphSession
from version import ENGINE_NAME, ENGINE_VERSION

EXIT_OK = 0
EXIT_FAILED = 1


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog=ENGINE_NAME,
        description="Export Defender for Cloud security posture data to CSV",
    )

    parser.add_argument(
        "--subscription",
        default=None,
        help="Subscription id or display name to bind (or AZURE_SUBSCRIPTION_ID env var). "
        "Default: every subscription visible to the identity.",
    )
    parser.add_argument(
        "--output-path",
        default=None,
        help="Output directory (or OUTPUT_PATH env var). Default: ./Reports",
    )
    parser.add_argument(
        "--include-compliance",
        action="store_true",
        default=None,
        help="Also export regulatory compliance standards, controls and assessments.",
    )
    parser.add_argument(
        "--include-recommendations",
        action="store_true",
        default=None,
        help="Also export unhealthy assessments as recommendations.",
    )
    parser.add_argument(
        "--date-suffix",
        action="store_true",
        default=None,
        help="Append _yyyyMMdd_HHmmss to every output file name.",
    )

    parser.add_argument(
        "--log-file",
        default=None,
        help="Append-only log file (or POSTURE_LOG_FILE env var). Default: <output-path>/SecurityExport.log",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log verbosity (or POSTURE_LOG_LEVEL env var). Default: INFO",
    )

    # Convenience
    parser.add_argument(
        "--print-version",
        action="store_true",
        help="Print tool name/version and exit.",
    )

    return parser.parse_args(argv)


def _pick(cli_value: bool | None, default: bool) -> bool:
    return default if cli_value is None else bool(cli_value)


def build_run_config(args: argparse.Namespace, settings: Settings) -> RunConfig:
    """Resolve CLI flags over settings into the immutable RunConfig."""
    output_path = (args.output_path or "").strip() or settings.export.output_path
    selector = (args.subscription or "").strip() or settings.azure.subscription
    return RunConfig(
        output_path=Path(output_path),
        subscription_selector=selector or None,
        include_compliance=_pick(args.include_compliance, settings.export.include_compliance),
        include_recommendations=_pick(args.include_recommendations, settings.export.include_recommendations),
        date_suffix=_pick(args.date_suffix, settings.export.date_suffix),
    )


def main(argv: Sequence[str] | None = None, *, session: GraphSession | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)

    if args.print_version:
        print(f"ENGINE_NAME={ENGINE_NAME}")
        print(f"ENGINE_VERSION={ENGINE_VERSION}")
        return EXIT_OK

    settings = get_settings()
    config = build_run_config(args, settings)

    log_file = args.log_file or settings.logging.log_file or ExportPaths(config.output_path).default_log_file()
    logger = build_run_logger(ENGINE_NAME, level=args.log_level, log_file=log_file)

    try:
        graph_session = session or AzureGraphSession.from_settings(settings.azure)
        result = ExportPipeline(session=graph_session, logger=logger).run(config)

        if not result.ok:
            return EXIT_FAILED

        for path in output_files(result):
            logger.info("Output file: %s", path)
        return EXIT_OK
    finally:
        close_run_logger(logger)


def cli() -> None:
    """Console-script entry point."""
    raise SystemExit(main())


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
