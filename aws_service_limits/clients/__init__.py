"""
AWS API clients used by the pipeline.
"""

from .cloudwatch import CloudWatchMetricReader
from .service_quotas import QuotaPage, ServiceInfo, ServiceQuotasClient, create_session

__all__ = [
    "CloudWatchMetricReader",
    "QuotaPage",
    "ServiceInfo",
    "ServiceQuotasClient",
    "create_session",
]
