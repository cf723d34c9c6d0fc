"""Utility functions for morpherctl."""

import logging
import sys
from typing import Optional, TextIO

import structlog


def setup_logging(level: str = "WARNING", stream: Optional[TextIO] = None) -> None:
    """
    Configure structlog with consistent formatting.

    Log lines go to stderr so command output on stdout stays clean.
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)
    if not isinstance(numeric_level, int):
        numeric_level = logging.WARNING

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=False,
    )


def format_duration(seconds: float) -> str:
    """Format duration in human-readable format."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m"
