"""
Command-line interface for AWS Service Limits.
"""
