# ABOUTME: Logging configuration, context helpers and window progress display
# ABOUTME: Provides structured logging for the batch run and rich progress output for the CLI

from .config import LoggingMode, configure_logging, configure_structlog, get_logging_status
from .progress import WindowProgressPrinter
from .utils import get_logger, log_api_call, with_entry_context, with_pipeline_context

__all__ = [
    # Configuration
    "LoggingMode",
    "configure_logging",
    "configure_structlog",
    "get_logging_status",
    # Progress
    "WindowProgressPrinter",
    # Utilities
    "get_logger",
    "log_api_call",
    "with_entry_context",
    "with_pipeline_context",
]
