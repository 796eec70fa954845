"""Diagnostics and reports for gbvm-bench."""

from .errors import ErrorCode, BenchError, ERROR_METADATA
from .report import FrameReport

__all__ = [
    # Errors
    'ErrorCode',
    'BenchError',
    'ERROR_METADATA',
    # Report
    'FrameReport',
]
