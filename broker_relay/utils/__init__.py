"""
Logging and time helpers
"""

from .logger import setup_logging, get_logger, OperationLogger, log_startup_info
from .timeutils import utc_now, to_iso, parse_iso

__all__ = [
    "setup_logging",
    "get_logger",
    "OperationLogger",
    "log_startup_info",
    "utc_now",
    "to_iso",
    "parse_iso",
]
