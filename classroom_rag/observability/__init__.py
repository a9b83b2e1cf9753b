"""
Observability module.

Provides logging configuration and structured logging helpers.
"""

from classroom_rag.observability.log_utils import log_exception_with_context, log_with_context
from classroom_rag.observability.logger import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
    "log_with_context",
    "log_exception_with_context",
]
