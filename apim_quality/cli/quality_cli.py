"""
Command-line interface for the Application quality extraction.

Usage:
    python -m apim_quality.cli.quality_cli extract-application-quality [options]
"""

import argparse
import asyncio
import sys
from typing import TextIO

from dotenv import load_dotenv

from apim_quality.core.criteria import CriteriaConfigLoader, CriteriaRegistry, default_criteria
from apim_quality.core.errors import QualityAuditError
from apim_quality.core.models import ApplicationReport, AuditSettings, EvaluationContext
from apim_quality.management.management_api import ManagementApi
from apim_quality.observability.logger import get_logger, setup_logger
from apim_quality.observability.metrics import MetricsCollector, start_metrics_server
from apim_quality.search.elasticsearch import ElasticsearchClient
from apim_quality.streaming.pipeline import QualityPipeline
from apim_quality.streaming.sinks.csv_report_sink import CsvReportSink
from apim_quality.streaming.sources.application_source import ApplicationSource
from apim_quality.utils.validation import (
    parse_http_headers,
    validate_application_id,
    validate_duration_ms,
    validate_name_filter,
)

logger = get_logger("apim_quality.cli")


def build_registry(settings: AuditSettings) -> CriteriaRegistry:
    """
    Build the criteria registry of a run.

    Shipped criteria use the configured description minimum length; the
    optional YAML file is applied on top.
    """
    definitions = default_criteria(settings.description_min_length)
    if settings.criteria_config:
        definitions = CriteriaConfigLoader(settings.criteria_config).load_definitions(definitions)
    return CriteriaRegistry(definitions)


async def run_extraction(
    settings: AuditSettings,
    management_api,
    search=None,
    output: TextIO | None = None,
    metrics: MetricsCollector | None = None,
) -> list[ApplicationReport]:
    """
    Extract the quality of the Applications selected by `settings`.

    Args:
        settings: Run configuration
        management_api: Logged-in management service client
        search: Search collaborator, required when runtime evaluation is on
        output: CSV output stream (defaults to stdout)
        metrics: Metrics collector

    Returns:
        ApplicationReports in rendering order
    """
    registry = build_registry(settings)
    # Computed once: the pipeline and the sink share this exact ordering
    criteria = registry.get_enabled_criteria(settings.evaluate_runtime)

    if settings.evaluate_runtime and search is None:
        raise ValueError("Runtime evaluation is enabled but no search collaborator is configured")

    context = EvaluationContext(
        management_api=management_api,
        search=search,
        search_index=settings.elasticsearch_index,
        runtime_from=settings.runtime_from,
        runtime_to=settings.runtime_to,
    )
    source = ApplicationSource(
        management_api,
        filter_by_id=settings.filter_by_id,
        filter_by_name=settings.filter_by_name,
        delay_period=settings.delay_period,
        timeout=settings.list_timeout,
    )
    sink = CsvReportSink(criteria, output=output)

    pipeline = QualityPipeline(source, criteria, context, sink, metrics=metrics)
    return await pipeline.run()


async def _extract(args, settings: AuditSettings) -> None:
    async with ManagementApi(args.url, args.username, args.password) as management_api:
        await management_api.login()

        search = None
        if settings.evaluate_runtime:
            search = ElasticsearchClient(settings.elasticsearch_url, headers=settings.elasticsearch_headers)
        try:
            await run_extraction(settings, management_api, search=search)
        finally:
            if search is not None:
                await search.close()


def settings_from_args(args) -> AuditSettings:
    return AuditSettings(
        filter_by_id=args.filter_by_id,
        filter_by_name=args.filter_by_name,
        delay_period=args.delay_period,
        list_timeout=args.timeout,
        evaluate_runtime=args.evaluate_runtime,
        runtime_from=args.evaluate_runtime_from,
        runtime_to=args.evaluate_runtime_to,
        elasticsearch_url=args.elasticsearch_url,
        elasticsearch_headers=parse_http_headers(args.elasticsearch_url_header),
        elasticsearch_index=args.elasticsearch_index,
        description_min_length=args.description_min_length,
        criteria_config=args.criteria_config,
    )


def extract_command(args) -> int:
    """
    Execute the Application quality extraction command.

    Args:
        args: Command-line arguments

    Returns:
        Process exit status
    """
    try:
        settings = settings_from_args(args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    if args.metrics_port:
        start_metrics_server(args.metrics_port)

    try:
        asyncio.run(_extract(args, settings))
    except QualityAuditError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.error(f"Error during quality extraction: {e}", exc_info=True)
        return 1

    return 0


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="API management quality tooling",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Structural criteria of every Application whose name contains "billing"
  apim-quality extract-application-quality --filter-by-name billing > quality.csv

  # Include runtime usage over the last week
  apim-quality extract-application-quality --evaluate-runtime \\
      --evaluate-runtime-from now-7d \\
      --elasticsearch-url http://localhost:9200 \\
      --elasticsearch-index 'gravitee-request-*'

Management credentials default to the APIM_URL, APIM_USERNAME and
APIM_PASSWORD environment variables (a .env file is loaded if present).
        """
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: env var LOG_LEVEL or INFO)"
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "text"],
        help="Log format (default: env var LOG_FORMAT or json)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    extract_parser = subparsers.add_parser(
        "extract-application-quality",
        help="Extract quality criteria compliance of Applications as CSV"
    )
    extract_parser.add_argument("--url", default=None, help="Management API base URL")
    extract_parser.add_argument("--username", default=None, help="Management API user")
    extract_parser.add_argument("--password", default=None, help="Management API password")
    extract_parser.add_argument(
        "--filter-by-id",
        type=validate_application_id,
        help="Filter by Application UUID"
    )
    extract_parser.add_argument(
        "--filter-by-name",
        type=validate_name_filter,
        help="Filter by Application name (insensitive regex)"
    )
    extract_parser.add_argument(
        "--delay-period",
        type=validate_duration_ms,
        default=200,
        help="Delay period to temporize Application broadcast, in ms (default: 200)"
    )
    extract_parser.add_argument(
        "--timeout",
        type=validate_duration_ms,
        default=30000,
        help="Overall Application listing timeout, in ms (default: 30000)"
    )
    extract_parser.add_argument(
        "--evaluate-runtime",
        action="store_true",
        help="Evaluate the runtime criteria"
    )
    extract_parser.add_argument(
        "--evaluate-runtime-from",
        default="now-1M",
        help="Start date for runtime evaluation, Elasticsearch date format (default: now-1M)"
    )
    extract_parser.add_argument(
        "--evaluate-runtime-to",
        default="now",
        help="End date for runtime evaluation, Elasticsearch date format (default: now)"
    )
    extract_parser.add_argument("--elasticsearch-url", help="Elasticsearch base URL")
    extract_parser.add_argument(
        "--elasticsearch-url-header",
        action="append",
        default=[],
        help="Additional HTTP header sent to Elasticsearch, 'Name: value' (repeatable)"
    )
    extract_parser.add_argument(
        "--elasticsearch-index",
        help="Elasticsearch request index to search (can be a pattern as gravitee-request-2019.10.*)"
    )
    extract_parser.add_argument(
        "--description-min-length",
        type=int,
        default=30,
        help="Minimum Application description length (default: 30)"
    )
    extract_parser.add_argument(
        "--criteria-config",
        help="YAML file disabling, tuning or adding criteria"
    )
    extract_parser.add_argument(
        "--metrics-port",
        type=int,
        default=None,
        help="Expose Prometheus metrics on this port while running"
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logger(level=args.log_level, format_type=args.log_format)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "extract-application-quality":
        sys.exit(extract_command(args))


if __name__ == "__main__":
    main()
