"""
Report rendering.

Turns finalized result rows into table, CSV, markdown or JSON output.
"""

import csv
import io
import json
from typing import List, Sequence

from rich.console import Console
from rich.table import Table

from aws_service_limits.config.loader import OutputFormat
from aws_service_limits.core.pipeline import ResultRecord

CSV_HEADER = ["Account ID", "Region", "Service Code", "Quota Name", "Value", "Usage", "Global"]
MARKDOWN_HEADER = (
    "| Account ID | Region | Service Code | Global | Value | Usage | Quota Name |\n"
    "|------------|--------|--------------|-------|-------|-------|------------|"
)


def _global_flag(record: ResultRecord) -> str:
    return "true" if record.global_quota else "false"


def build_table(records: Sequence[ResultRecord]) -> Table:
    """Build a rich table; rows without usage are highlighted in yellow."""
    table = Table(box=None, header_style="bold", pad_edge=False)
    table.add_column("Account ID", no_wrap=True)
    table.add_column("Region", no_wrap=True)
    table.add_column("Service", no_wrap=True)
    table.add_column("Global", no_wrap=True)
    table.add_column("Value", no_wrap=True)
    table.add_column("Usage", no_wrap=True)
    table.add_column("Quota Name", overflow="fold")

    for record in records:
        table.add_row(
            record.account_id,
            record.region,
            record.service_code,
            _global_flag(record),
            record.value,
            record.usage,
            record.quota_name,
            style=None if record.is_available else "yellow",
        )
    return table


def render_csv(records: Sequence[ResultRecord]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for record in records:
        writer.writerow([
            record.account_id,
            record.region,
            record.service_code,
            record.quota_name,
            record.value,
            record.usage,
            _global_flag(record),
        ])
    return buffer.getvalue()


def render_markdown(records: Sequence[ResultRecord]) -> str:
    lines: List[str] = [MARKDOWN_HEADER]
    for record in records:
        lines.append(
            f"| {record.account_id} | {record.region} | {record.service_code} "
            f"| {_global_flag(record)} | {record.value} | {record.usage} "
            f"| {record.quota_name} |"
        )
    return "\n".join(lines) + "\n"


def render_json(records: Sequence[ResultRecord]) -> str:
    return json.dumps([r.to_dict() for r in records], indent=2) + "\n"


def render_report(
    records: Sequence[ResultRecord],
    output_format: OutputFormat,
    console: Console
) -> None:
    """Write the report to the console in the requested format."""
    if output_format == OutputFormat.TABLE:
        console.print(build_table(records))
        return

    renderers = {
        OutputFormat.CSV: render_csv,
        OutputFormat.MARKDOWN: render_markdown,
        OutputFormat.JSON: render_json,
    }
    # Machine-readable formats bypass rich markup and wrapping
    console.file.write(renderers[output_format](records))
    console.file.flush()
