"""Utility modules for the client.

Includes:
- Logging configuration
- Call timing
- Table export to JSONL and Parquet
"""

from .call_logger import Timer, timed_operation
from .file_io import write_jsonl, write_parquet
from .logging_config import JsonFormatter, get_logger, setup_logging

__all__ = [
    "setup_logging",
    "get_logger",
    "JsonFormatter",
    "Timer",
    "timed_operation",
    "write_jsonl",
    "write_parquet",
]
