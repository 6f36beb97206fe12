"""
Service quota records.

Holds the quota data consumed from the Service Quotas listing and the helpers
that derive report fields from it.
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple

# Service Quotas reports unit-less quotas with the literal string "None"
NO_UNIT = "None"

# arn:aws:servicequotas:<region>:<account>:<service>/<quota>
_MIN_ARN_SEGMENTS = 5
_REGION_SEGMENT = 3
_ACCOUNT_SEGMENT = 4


class InvalidQuotaArnError(ValueError):
    """Raised when a quota ARN cannot be decomposed into region and account."""


@dataclass(frozen=True)
class QuotaRecord:
    """A single quota as returned by the Service Quotas listing."""
    service_code: str
    quota_code: str
    quota_name: str
    value: float
    unit: str
    global_quota: bool
    quota_arn: str

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "QuotaRecord":
        """Build a record from a Service Quotas ``ServiceQuota`` payload."""
        return cls(
            service_code=payload["ServiceCode"],
            quota_code=payload["QuotaCode"],
            quota_name=payload["QuotaName"],
            value=float(payload["Value"]),
            unit=payload.get("Unit", NO_UNIT),
            global_quota=bool(payload.get("GlobalQuota", False)),
            quota_arn=payload["QuotaArn"],
        )


def parse_quota_arn(arn: str) -> Tuple[str, str]:
    """Extract region and account id from a quota ARN.
    
    Args:
        arn: Colon-delimited quota ARN
        
    Returns:
        Tuple of (region, account_id)
        
    Raises:
        InvalidQuotaArnError: If the ARN has fewer than 5 segments
    """
    parts = arn.split(":")
    if len(parts) < _MIN_ARN_SEGMENTS:
        raise InvalidQuotaArnError(
            f"Quota ARN must have at least {_MIN_ARN_SEGMENTS} segments: {arn!r}"
        )
    return parts[_REGION_SEGMENT], parts[_ACCOUNT_SEGMENT]


def format_quota_value(value: float, unit: str) -> str:
    """Format a quota limit as a truncated integer with its unit."""
    formatted = str(int(value))
    if unit and unit != NO_UNIT:
        formatted = f"{formatted} {unit}"
    return formatted
