"""
Logger configuration and setup.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any, TextIO, TYPE_CHECKING

from .log_formatter import StructuredFormatter, ColoredFormatter, CredentialRedactingFilter
from .log_handler import RotatingFileHandler, ConsoleHandler

if TYPE_CHECKING:
    from ..config import LoggingConfig


@dataclass
class LoggerConfig:
    """Configuration for logging system."""
    level: str = "INFO"
    file_path: Optional[str] = None
    format_string: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_file_size: int = 10  # MB
    backup_count: int = 5
    enable_console: bool = True
    enable_structured: bool = False
    enable_colors: bool = True

    @classmethod
    def from_app_config(cls, config: "LoggingConfig", level: Optional[str] = None) -> "LoggerConfig":
        return cls(
            level=level or config.level,
            file_path=config.file,
            format_string=config.format,
            max_file_size=config.max_file_size,
            backup_count=config.backup_count,
            enable_structured=config.structured
        )


_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL
}


class LoggingManager:
    """
    Installs handlers on the root logger once per process.

    Library modules only call ``logging.getLogger(__name__)``; configuring
    handlers is left to the entry point (the CLI or the embedding app).
    """

    def __init__(self):
        self._handlers: Dict[str, logging.Handler] = {}
        self._configured = False
        self.config: Optional[LoggerConfig] = None

    @property
    def configured(self) -> bool:
        return self._configured

    def setup_logging(self, config: Optional[LoggerConfig] = None, stream: Optional[TextIO] = None) -> None:
        """
        Set up the logging system with the specified configuration.

        Args:
            config: Logging configuration (defaults if not provided)
            stream: Console stream (stderr if not provided)
        """
        if self._configured:
            return

        config = config or LoggerConfig()
        self.config = config
        level = self._get_log_level(config.level)

        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        redactor = CredentialRedactingFilter()

        if config.enable_console:
            console_handler = ConsoleHandler(stream)
            console_handler.setLevel(level)
            if config.enable_structured:
                console_handler.setFormatter(StructuredFormatter())
            elif config.enable_colors and console_handler.is_tty():
                console_handler.setFormatter(ColoredFormatter(config.format_string))
            else:
                console_handler.setFormatter(logging.Formatter(config.format_string))
            console_handler.addFilter(redactor)
            self._add_handler('console', console_handler)

        if config.file_path:
            file_handler = RotatingFileHandler(
                filename=config.file_path,
                maxBytes=config.max_file_size * 1024 * 1024,
                backupCount=config.backup_count,
                encoding='utf-8'
            )
            file_handler.setLevel(level)
            if config.enable_structured:
                file_handler.setFormatter(StructuredFormatter())
            else:
                file_handler.setFormatter(logging.Formatter(config.format_string))
            file_handler.addFilter(redactor)
            self._add_handler('file', file_handler)

        # Reduce verbosity of HTTP libraries unless debugging
        for logger_name in ('urllib3', 'requests'):
            logging.getLogger(logger_name).setLevel(logging.WARNING if level > logging.DEBUG else logging.DEBUG)

        logging.getLogger(__name__).debug(f"Logging system initialized with level: {config.level}")
        self._configured = True

    def _add_handler(self, name: str, handler: logging.Handler) -> None:
        logging.getLogger().addHandler(handler)
        self._handlers[name] = handler

    def _get_log_level(self, level_str: str) -> int:
        return _LEVELS.get(level_str.upper(), logging.INFO)

    def set_level(self, level: str) -> None:
        log_level = self._get_log_level(level)
        logging.getLogger().setLevel(log_level)
        for handler in self._handlers.values():
            handler.setLevel(log_level)

    def get_log_stats(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = {
            "configured": self._configured,
            "handlers_active": len(self._handlers),
            "current_level": self.config.level if self.config else "Unknown"
        }
        for name, handler in self._handlers.items():
            if hasattr(handler, 'get_stats'):
                stats[name] = handler.get_stats()
        return stats

    def close_handlers(self) -> None:
        """Detach and close all handlers installed by this manager."""
        root_logger = logging.getLogger()
        for handler in self._handlers.values():
            root_logger.removeHandler(handler)
            handler.close()

        self._handlers.clear()
        self._configured = False


# Global logging manager instance
_logging_manager = LoggingManager()


def setup_logging(config: Optional[LoggerConfig] = None, stream: Optional[TextIO] = None) -> None:
    _logging_manager.setup_logging(config, stream)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_log_level(level: str) -> None:
    _logging_manager.set_level(level)


def get_logging_stats() -> Dict[str, Any]:
    return _logging_manager.get_log_stats()


def close_logging() -> None:
    _logging_manager.close_handlers()
