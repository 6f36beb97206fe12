"""
CloudWatch metric reader.
"""

from typing import Any, Optional

import boto3

from aws_service_limits.core.usage import UsageQuery

# Granularity of the returned data points, in seconds
METRIC_PERIOD = 60


class CloudWatchMetricReader:
    """Reads a single statistic value for a usage query."""

    def __init__(self, client: Any):
        self.client = client

    @classmethod
    def from_session(cls, session: boto3.Session) -> "CloudWatchMetricReader":
        return cls(session.client("cloudwatch"))

    def read_metric(self, query: UsageQuery) -> Optional[float]:
        """Return the latest data point for the query, or None without data."""
        response = self.client.get_metric_statistics(
            Namespace=query.namespace,
            MetricName=query.metric_name,
            Dimensions=query.dimensions(),
            StartTime=query.window.start,
            EndTime=query.window.end,
            Period=METRIC_PERIOD,
            Statistics=[query.statistic.value],
        )
        datapoints = response.get("Datapoints", [])
        if not datapoints:
            return None
        # CloudWatch does not order data points
        latest = max(datapoints, key=lambda d: d["Timestamp"])
        return float(latest[query.statistic.value])
