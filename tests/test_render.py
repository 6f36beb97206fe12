"""
Tests for report rendering.
"""

import io
import json

from rich.console import Console

from aws_service_limits.cli.render import (
    build_table,
    render_csv,
    render_json,
    render_markdown,
    render_report,
)
from aws_service_limits.config.loader import OutputFormat
from aws_service_limits.core.pipeline import ResultRecord
from aws_service_limits.core.usage import NOT_AVAILABLE

RECORDS = [
    ResultRecord("123456789", "us-west-1", "ec2", "Attachments per VPC", "100", "50", False),
    ResultRecord("123456789", "us-west-1", "ec2", "Elastic IPs", "5", NOT_AVAILABLE, True),
]


def _console():
    return Console(file=io.StringIO(), width=200, color_system=None)


class TestRenderers:
    """Test the individual output formats."""
    
    def test_csv(self):
        """CSV has a header row and one row per record."""
        assert render_csv(RECORDS) == (
            "Account ID,Region,Service Code,Quota Name,Value,Usage,Global\n"
            "123456789,us-west-1,ec2,Attachments per VPC,100,50,false\n"
            "123456789,us-west-1,ec2,Elastic IPs,5,Not Available,true\n"
        )
    
    def test_csv_quotes_commas(self):
        """Quota names containing commas stay in one column."""
        record = ResultRecord("1", "r", "s", "Read, write ops", "1", "1", False)
        
        assert '"Read, write ops"' in render_csv([record])
    
    def test_markdown(self):
        """Markdown rows follow the header column order."""
        output = render_markdown(RECORDS[:1])
        
        lines = output.splitlines()
        assert lines[0] == "| Account ID | Region | Service Code | Global | Value | Usage | Quota Name |"
        assert lines[2] == "| 123456789 | us-west-1 | ec2 | false | 100 | 50 | Attachments per VPC |"
    
    def test_json(self):
        """JSON output is an array of report rows."""
        data = json.loads(render_json(RECORDS))
        
        assert len(data) == 2
        assert data[1]["QuotaName"] == "Elastic IPs"
        assert data[1]["Usage"] == "Not Available"
        assert data[1]["GlobalQuota"] is True
    
    def test_json_empty(self):
        """An empty report is an empty array."""
        assert json.loads(render_json([])) == []
    
    def test_table_rows(self):
        """The table lists every record."""
        console = _console()
        console.print(build_table(RECORDS))
        output = console.file.getvalue()
        
        assert "Account ID" in output
        assert "Quota Name" in output
        assert "Attachments per VPC" in output
        assert "Not Available" in output
    
    def test_table_highlights_unavailable_rows(self):
        """Rows without usage are styled yellow."""
        table = build_table(RECORDS)
        
        assert table.rows[0].style is None
        assert table.rows[1].style == "yellow"


class TestRenderReport:
    """Test format dispatch."""
    
    def test_dispatch_csv(self):
        """Machine formats are written verbatim."""
        console = _console()
        
        render_report(RECORDS, OutputFormat.CSV, console)
        
        assert console.file.getvalue() == render_csv(RECORDS)
    
    def test_dispatch_table(self):
        """Table format goes through rich."""
        console = _console()
        
        render_report(RECORDS, OutputFormat.TABLE, console)
        
        assert "Elastic IPs" in console.file.getvalue()
