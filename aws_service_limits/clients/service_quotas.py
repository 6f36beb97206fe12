"""
Service Quotas API client.

Thin wrapper over the boto3 ``service-quotas`` client that converts API
payloads into the pipeline's types.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

import boto3

from aws_service_limits.core.quota import QuotaRecord
from aws_service_limits.core.usage import UsageMetric

LIST_SERVICES_PAGE_SIZE = 100


def create_session(profile: Optional[str] = None, region: Optional[str] = None) -> boto3.Session:
    """Create a boto3 session from the default credential chain."""
    return boto3.Session(profile_name=profile, region_name=region)


@dataclass(frozen=True)
class QuotaPage:
    """One page of the quota listing."""
    records: Tuple[QuotaRecord, ...]
    next_token: Optional[str] = None


@dataclass(frozen=True)
class ServiceInfo:
    """A service supported by the Service Quotas API."""
    service_code: str
    service_name: str


class ServiceQuotasClient:
    """Quota listing and usage metric lookup for one account and region.
    
    boto3 clients are thread-safe, so a single instance is shared by all
    pipeline tasks.
    """

    def __init__(self, client: Any):
        self.client = client

    @classmethod
    def from_session(cls, session: boto3.Session) -> "ServiceQuotasClient":
        return cls(session.client("service-quotas"))

    def list_quotas(self, service_code: str, next_token: Optional[str] = None) -> QuotaPage:
        """Fetch one page of applied quotas for a service."""
        params = {"ServiceCode": service_code}
        if next_token:
            params["NextToken"] = next_token
        response = self.client.list_service_quotas(**params)
        records = tuple(QuotaRecord.from_api(q) for q in response.get("Quotas", []))
        return QuotaPage(records=records, next_token=response.get("NextToken"))

    def quota_source(
        self, service_code: str, next_token: Optional[str]
    ) -> Tuple[Tuple[QuotaRecord, ...], Optional[str]]:
        """Adapter matching the pipeline's quota source signature."""
        page = self.list_quotas(service_code, next_token)
        return page.records, page.next_token

    def get_usage_metric(self, service_code: str, quota_code: str) -> Optional[UsageMetric]:
        """Return the usage metric of a quota's default definition, if any."""
        response = self.client.get_aws_default_service_quota(
            ServiceCode=service_code,
            QuotaCode=quota_code,
        )
        metric = (response.get("Quota") or {}).get("UsageMetric")
        if not metric or not metric.get("MetricNamespace"):
            return None
        return UsageMetric(
            namespace=metric["MetricNamespace"],
            metric_name=metric.get("MetricName", ""),
            statistic=metric.get("MetricStatisticRecommendation", ""),
            dimensions=dict(metric.get("MetricDimensions") or {}),
        )

    def list_services(self) -> List[ServiceInfo]:
        """List every service supported by Service Quotas, sorted by name."""
        services: List[ServiceInfo] = []
        params = {"MaxResults": LIST_SERVICES_PAGE_SIZE}
        while True:
            response = self.client.list_services(**params)
            for service in response.get("Services", []):
                services.append(ServiceInfo(
                    service_code=service["ServiceCode"],
                    service_name=service["ServiceName"],
                ))
            next_token = response.get("NextToken")
            if not next_token:
                break
            params["NextToken"] = next_token
        return sorted(services, key=lambda s: s.service_name)
