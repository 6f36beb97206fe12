"""
Configuration for AWS Service Limits.
"""

from .loader import OutputFormat, PipelineConfig, load_pipeline_config

__all__ = ["OutputFormat", "PipelineConfig", "load_pipeline_config"]
