"""
Logging system for the content store.
"""

from .logger_config import (
    setup_logging, get_logger, set_log_level, get_logging_stats, close_logging,
    LoggerConfig, LoggingManager
)
from .log_formatter import StructuredFormatter, ColoredFormatter, CredentialRedactingFilter
from .log_handler import RotatingFileHandler, ConsoleHandler

__all__ = [
    "setup_logging",
    "get_logger",
    "set_log_level",
    "get_logging_stats",
    "close_logging",
    "LoggerConfig",
    "LoggingManager",
    "StructuredFormatter",
    "ColoredFormatter",
    "CredentialRedactingFilter",
    "RotatingFileHandler",
    "ConsoleHandler"
]
