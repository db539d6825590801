"""
Shared utility functions.

This package contains utility code used across multiple
pipeline stages.
"""

from .logging import JsonlFormatter, RunContextFilter, close_logging, log_event, setup_logging

__all__ = [
    "setup_logging",
    "close_logging",
    "log_event",
    "JsonlFormatter",
    "RunContextFilter",
]
