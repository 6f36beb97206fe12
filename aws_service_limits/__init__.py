"""
AWS Service Limits.

Reports service quotas for an AWS account together with their current usage.
"""

__version__ = "0.1.0"
