"""
Log handlers with record counting.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, TextIO


class RotatingFileHandler(logging.handlers.RotatingFileHandler):
    """
    Rotating file handler that creates its directory and counts what it writes.
    """

    def __init__(
        self,
        filename: str,
        mode: str = 'a',
        maxBytes: int = 0,
        backupCount: int = 0,
        encoding: Optional[str] = None,
        delay: bool = False
    ):
        Path(filename).parent.mkdir(parents=True, exist_ok=True)
        super().__init__(filename, mode, maxBytes, backupCount, encoding, delay)

        self.records_written = 0
        self.rotations_performed = 0

    def emit(self, record: logging.LogRecord) -> None:
        super().emit(record)
        self.records_written += 1

    def doRollover(self) -> None:
        super().doRollover()
        self.rotations_performed += 1

    def get_stats(self) -> dict:
        return {
            "filename": self.baseFilename,
            "records_written": self.records_written,
            "rotations_performed": self.rotations_performed
        }


class ConsoleHandler(logging.StreamHandler):
    """
    Stream handler defaulting to stderr, so command output on stdout stays
    machine-readable.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        super().__init__(stream or sys.stderr)
        self.records_written = 0

    def emit(self, record: logging.LogRecord) -> None:
        super().emit(record)
        self.records_written += 1

    def is_tty(self) -> bool:
        isatty = getattr(self.stream, "isatty", None)
        return bool(isatty and isatty())

    def get_stats(self) -> dict:
        return {"records_written": self.records_written}
