"""
Usage resolution for a single quota.

Looks up the usage metric Service Quotas recommends for a quota, queries it
over the run's time window and formats the result for the report.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional

from .quota import QuotaRecord

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "Not Available"

# Dimension names in the order they are sent to CloudWatch
DIMENSION_NAMES = ("Class", "Resource", "Service", "Type")


class Statistic(Enum):
    """Statistics supported for usage queries."""
    AVERAGE = "Average"
    MAXIMUM = "Maximum"
    SUM = "Sum"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Statistic":
        """Parse a recommended statistic name.
        
        Raises:
            ValueError: If the statistic is missing or unsupported
        """
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unsupported statistic: {value}")


@dataclass(frozen=True)
class UsageMetric:
    """Usage metric descriptor attached to a quota."""
    namespace: str
    metric_name: str
    statistic: str
    dimensions: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class TimeWindow:
    """Closed time range shared by every metric query of a run."""
    start: datetime
    end: datetime

    @classmethod
    def last_hours(cls, hours: int, now: Optional[datetime] = None) -> "TimeWindow":
        """Window covering the ``hours`` hours before ``now``."""
        end = now or datetime.now(timezone.utc)
        return cls(start=end - timedelta(hours=hours), end=end)


@dataclass(frozen=True)
class UsageQuery:
    """Fully specified metric query for one quota."""
    namespace: str
    metric_name: str
    statistic: Statistic
    window: TimeWindow
    class_: Optional[str] = None
    resource: Optional[str] = None
    service: Optional[str] = None
    type_: Optional[str] = None

    def __post_init__(self):
        """Validate mandatory query fields."""
        if not self.namespace:
            raise ValueError("namespace is required")
        if not isinstance(self.statistic, Statistic):
            raise ValueError("statistic must be a Statistic")

    @classmethod
    def from_metric(cls, metric: UsageMetric, window: TimeWindow) -> "UsageQuery":
        """Build a query from a usage metric descriptor."""
        dims = metric.dimensions or {}
        return cls(
            namespace=metric.namespace,
            metric_name=metric.metric_name,
            statistic=Statistic.parse(metric.statistic),
            window=window,
            class_=dims.get("Class"),
            resource=dims.get("Resource"),
            service=dims.get("Service"),
            type_=dims.get("Type"),
        )

    def dimensions(self) -> List[Dict[str, str]]:
        """Non-empty dimensions in CloudWatch request form."""
        values = (self.class_, self.resource, self.service, self.type_)
        return [
            {"Name": name, "Value": value}
            for name, value in zip(DIMENSION_NAMES, values)
            if value
        ]


UsageResolver = Callable[[str, str], Optional[UsageMetric]]
MetricReader = Callable[[UsageQuery], Optional[float]]


def format_usage(value: Optional[float]) -> str:
    """Format a metric value as a rounded integer string.
    
    A query without data points still counts as resolved and reports zero.
    """
    if value is None:
        value = 0.0
    return f"{value:.0f}"


def resolve_usage(
    record: QuotaRecord,
    resolver: UsageResolver,
    reader: MetricReader,
    window: TimeWindow,
) -> str:
    """Resolve the current usage of a quota.
    
    Errors from either call are logged and reported as ``NOT_AVAILABLE`` so
    that the quota row is still emitted.
    
    Args:
        record: Quota to resolve
        resolver: Returns the usage metric descriptor, or None
        reader: Returns the metric value, or None if there are no data points
        window: Time window for the metric query
        
    Returns:
        Formatted usage, or ``NOT_AVAILABLE``
    """
    try:
        metric = resolver(record.service_code, record.quota_code)
    except Exception as e:
        logger.warning(
            "Failed to resolve usage metric for %s/%s: %s",
            record.service_code, record.quota_code, e
        )
        return NOT_AVAILABLE

    if metric is None:
        return NOT_AVAILABLE

    try:
        query = UsageQuery.from_metric(metric, window)
        value = reader(query)
    except Exception as e:
        logger.warning(
            "Failed to read usage metric %s/%s for %s: %s",
            metric.namespace, metric.metric_name, record.quota_name, e
        )
        return NOT_AVAILABLE

    return format_usage(value)
