"""
Custom log formatters and filters.
"""

import json
import logging
import re
from datetime import datetime
from typing import Dict, Any, Optional


class StructuredFormatter(logging.Formatter):
    """
    Structured JSON formatter for machine-readable logs.

    One JSON object per line, with extra record attributes under "extra".
    """

    # Standard fields that should not be included in extra
    _standard_fields = {
        'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
        'module', 'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
        'thread', 'threadName', 'processName', 'process', 'getMessage',
        'exc_info', 'exc_text', 'stack_info', 'message', 'taskName'
    }

    def __init__(self, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if self.include_extra:
            extra = {
                key: value for key, value in record.__dict__.items()
                if key not in self._standard_fields and not key.startswith('_')
            }
            if extra:
                log_entry["extra"] = extra

        return json.dumps(log_entry, default=str, ensure_ascii=False)


class ColoredFormatter(logging.Formatter):
    """
    Colored formatter for console output with ANSI color codes.
    """

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m',
        'BOLD': '\033[1m'
    }

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None):
        super().__init__(fmt, datefmt)

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)

        level_color = self.COLORS.get(record.levelname, '')
        if not level_color:
            return formatted

        reset_color = self.COLORS['RESET']
        formatted = f"{level_color}{formatted}{reset_color}"
        bold_level = f"{self.COLORS['BOLD']}{record.levelname}{reset_color}{level_color}"
        return formatted.replace(record.levelname, bold_level, 1)


class CredentialRedactingFilter(logging.Filter):
    """
    Masks bearer tokens that end up in log messages, e.g. via a repr of
    request headers in a third-party library's debug output.
    """

    _patterns = [
        re.compile(
            r"(Authorization['\"]?\s*[:=]\s*['\"]?(?:token|bearer)\s+)[A-Za-z0-9_\-\.]+",
            re.IGNORECASE
        ),
        re.compile(r"\b(gh[pousr]_)[A-Za-z0-9]{16,}\b"),
        re.compile(r"\b(github_pat_)[A-Za-z0-9_]{22,}\b"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # Left for Handler.handleError to report at emit time
            return True
        redacted = message
        for pattern in self._patterns:
            redacted = pattern.sub(r"\1********", redacted)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True
