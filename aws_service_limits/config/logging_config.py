"""
Logging setup.

Log records go to stderr so they never mix with report output on stdout.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def configure_logging(log_level: str = "WARNING") -> None:
    """Configure root logging with a rich handler on stderr.
    
    Args:
        log_level: Minimum level to output (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        
    Raises:
        ValueError: If the level name is unknown
    """
    level_name = log_level.upper()
    if level_name not in LOG_LEVELS:
        raise ValueError(f"log_level must be one of: {list(LOG_LEVELS)}")

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=getattr(logging, level_name),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )

    # botocore logs every retry and credential lookup at INFO/DEBUG
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
