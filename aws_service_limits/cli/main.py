"""
CLI interface for AWS Service Limits.

Fetches the service quotas of an AWS service together with their current
usage and prints them as a report.
"""

import sys
from dataclasses import replace
from typing import Optional

import typer
from botocore.exceptions import BotoCoreError, ClientError
from rich.console import Console

from aws_service_limits.cli.render import render_report
from aws_service_limits.clients import (
    CloudWatchMetricReader,
    ServiceQuotasClient,
    create_session,
)
from aws_service_limits.config.loader import (
    PipelineConfig,
    load_pipeline_config,
    parse_output_format,
)
from aws_service_limits.config.logging_config import configure_logging
from aws_service_limits.core.pipeline import QuotaListingError, QuotaUsagePipeline
from aws_service_limits.core.progress import ProgressCounters, ProgressReporter
from aws_service_limits.core.quota import InvalidQuotaArnError

app = typer.Typer(help="Query AWS service quotas and usage.")
console = Console()
err_console = Console(stderr=True)

EXIT_CODE_OK = 0
EXIT_CODE_FAIL = 1


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """AWS Service Limits CLI."""
    if ctx.invoked_subcommand is None:
        console.print("AWS Service Limits - Use --help to see available commands")


def build_config(
    config_path: Optional[str] = None,
    **overrides
) -> PipelineConfig:
    """Load the config file (if any) and apply command-line overrides.

    Overrides left as None keep the file or default value.
    """
    config = load_pipeline_config(config_path) if config_path else PipelineConfig()
    values = {key: value for key, value in overrides.items() if value is not None}
    if "output_format" in values:
        values["output_format"] = parse_output_format(values["output_format"])
    return replace(config, **values)


@app.command()
def report(
    servicecode: Optional[str] = typer.Option(
        None,
        "--servicecode",
        "-s",
        help="The AWS service code to query. Default is 'ec2'."
    ),
    timeframe: Optional[int] = typer.Option(
        None,
        "--timeframe",
        "-t",
        help="Timeframe for the CloudWatch query in hours (1, 24, 48, 72, ...)."
    ),
    output_format: Optional[str] = typer.Option(
        None,
        "--format",
        "-f",
        help="Output format: table, csv, markdown, json."
    ),
    exclude_na: Optional[bool] = typer.Option(
        None,
        "--exclude-na/--include-na",
        help="Exclude quotas whose usage is 'Not Available'."
    ),
    max_workers: Optional[int] = typer.Option(
        None,
        "--max-workers",
        help="Maximum number of concurrent quota lookups."
    ),
    retry_metric_reads: Optional[bool] = typer.Option(
        None,
        "--retry-metric-reads/--no-retry-metric-reads",
        help="Also retry throttled CloudWatch reads."
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a YAML configuration file."
    ),
    profile: Optional[str] = typer.Option(
        None,
        "--profile",
        help="AWS profile to use."
    ),
    region: Optional[str] = typer.Option(
        None,
        "--region",
        help="AWS region to query."
    ),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Log level for diagnostics written to stderr."
    )
):
    """
    Fetch and display the quotas of a service with their current usage.

    Usage is read from the CloudWatch metric that Service Quotas associates
    with each quota. Quotas without such a metric report 'Not Available'.
    """
    try:
        configure_logging(log_level)
        config = build_config(
            config_path,
            service_code=servicecode,
            timeframe_hours=timeframe,
            output_format=output_format,
            exclude_not_available=exclude_na,
            max_workers=max_workers,
            retry_metric_reads=retry_metric_reads,
        )
    except (FileNotFoundError, ValueError) as e:
        err_console.print(f"[red]Configuration error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    try:
        session = create_session(profile=profile, region=region)
        quotas = ServiceQuotasClient.from_session(session)
        reader = CloudWatchMetricReader.from_session(session)

        counters = ProgressCounters()
        pipeline = QuotaUsagePipeline(
            config=config,
            quota_source=quotas.quota_source,
            usage_resolver=quotas.get_usage_metric,
            metric_reader=reader.read_metric,
            counters=counters,
        )
        with ProgressReporter(counters, stream=console.file):
            records = pipeline.run()
    except (QuotaListingError, InvalidQuotaArnError, BotoCoreError, ClientError) as e:
        err_console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    render_report(records, config.output_format, console)
    sys.exit(EXIT_CODE_OK)


@app.command()
def services(
    profile: Optional[str] = typer.Option(
        None,
        "--profile",
        help="AWS profile to use."
    ),
    region: Optional[str] = typer.Option(
        None,
        "--region",
        help="AWS region to query."
    )
):
    """List all services supported by the Service Quotas API."""
    try:
        session = create_session(profile=profile, region=region)
        client = ServiceQuotasClient.from_session(session)
        with console.status("Fetching services..."):
            supported = client.list_services()
    except (BotoCoreError, ClientError) as e:
        err_console.print(f"[red]Error fetching services:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    for service in supported:
        console.file.write(f"{service.service_name} ({service.service_code})\n")
    sys.exit(EXIT_CODE_OK)


if __name__ == "__main__":
    app()
