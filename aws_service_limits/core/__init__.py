"""
Core modules for AWS Service Limits.

This package contains the quota usage aggregation pipeline: quota records,
usage resolution, throttling backoff, progress tracking and result
finalization.
"""
