"""
Configuration management and loading.

Run settings are an explicit, immutable value handed to the pipeline. They
can be loaded from a YAML file and overridden from the command line.
"""

from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict

import yaml


class OutputFormat(Enum):
    """Report output formats."""
    TABLE = "table"
    CSV = "csv"
    MARKDOWN = "markdown"
    JSON = "json"


@dataclass(frozen=True)
class PipelineConfig:
    """Settings for one quota usage run."""
    service_code: str = "ec2"
    timeframe_hours: int = 1
    exclude_not_available: bool = False
    output_format: OutputFormat = OutputFormat.TABLE
    max_workers: int = 32
    max_attempts: int = 5
    retry_metric_reads: bool = False

    def __post_init__(self):
        """Validate configuration values."""
        if not self.service_code or not self.service_code.strip():
            raise ValueError("service_code is required and cannot be empty")
        if self.timeframe_hours <= 0:
            raise ValueError("timeframe_hours must be > 0")
        if self.max_workers <= 0:
            raise ValueError("max_workers must be > 0")
        if self.max_attempts <= 0:
            raise ValueError("max_attempts must be > 0")
        if not isinstance(self.output_format, OutputFormat):
            raise ValueError("output_format must be an OutputFormat")


_INT_KEYS = {'timeframe_hours', 'max_workers', 'max_attempts'}
_BOOL_KEYS = {'exclude_not_available', 'retry_metric_reads'}


def load_pipeline_config(path: str) -> PipelineConfig:
    """Load and validate run configuration from a YAML file.
    
    Unknown keys are rejected so that a typo never silently falls back to
    a default.
    
    Args:
        path: Path to YAML configuration file
        
    Returns:
        Validated PipelineConfig object
        
    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    
    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")
    
    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")
    
    allowed_keys = {f.name for f in fields(PipelineConfig)}
    unknown_keys = set(raw_config.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")
    
    return PipelineConfig(**_parse_values(raw_config))


def _parse_values(data: Dict[str, Any]) -> Dict[str, Any]:
    """Check value types and convert them to PipelineConfig field types."""
    values: Dict[str, Any] = {}
    for key, value in data.items():
        if key in _INT_KEYS:
            # bool is a subclass of int
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"'{key}' must be an integer")
            values[key] = value
        elif key in _BOOL_KEYS:
            if not isinstance(value, bool):
                raise ValueError(f"'{key}' must be a boolean")
            values[key] = value
        elif key == 'service_code':
            if not isinstance(value, str):
                raise ValueError("'service_code' must be a string")
            values[key] = value
        elif key == 'output_format':
            values[key] = parse_output_format(value)
    return values


def parse_output_format(value: Any) -> OutputFormat:
    """Parse an output format name.
    
    Raises:
        ValueError: If the format is not supported
    """
    if not isinstance(value, str):
        raise ValueError("'output_format' must be a string")
    try:
        return OutputFormat(value.lower())
    except ValueError:
        valid_formats = [fmt.value for fmt in OutputFormat]
        raise ValueError(f"'output_format' must be one of: {valid_formats}")
