"""
Maps store errors to severities and user-visible messages.
"""

import logging
from enum import Enum
from typing import Dict, Any, Tuple, Optional

from .exceptions import (
    StoreError, AuthFailureError, RemoteUnavailableError, RetriesExhaustedError,
    SchemaValidationError, ConfigurationError, ConflictError
)


class ErrorSeverity(Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


CONCURRENT_EDIT_MESSAGE = "Someone else updated this content; please retry."
SYSTEM_ERROR_MESSAGE = "A system error occurred while saving content. Please contact an administrator."


class ErrorHandler:
    """
    Translates store failures for end users and logs them at a level that
    matches their severity.

    A write that exhausted its retries is a concurrent-edit collision, not a
    hard failure: it gets its own message and a lower severity than auth or
    network errors.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._error_counts: Dict[str, int] = {}

    def classify(self, error: Exception) -> ErrorSeverity:
        if isinstance(error, RetriesExhaustedError):
            return ErrorSeverity.LOW if error.concurrent_edit else ErrorSeverity.MEDIUM
        if isinstance(error, ConflictError):
            return ErrorSeverity.LOW
        if isinstance(error, SchemaValidationError):
            return ErrorSeverity.MEDIUM
        if isinstance(error, RemoteUnavailableError):
            return ErrorSeverity.MEDIUM if error.transient else ErrorSeverity.HIGH
        if isinstance(error, AuthFailureError):
            return ErrorSeverity.HIGH
        if isinstance(error, ConfigurationError):
            return ErrorSeverity.CRITICAL
        return ErrorSeverity.HIGH

    def user_message(self, error: Exception) -> str:
        if isinstance(error, RetriesExhaustedError) and error.concurrent_edit:
            return CONCURRENT_EDIT_MESSAGE
        if isinstance(error, SchemaValidationError):
            return f"The content is not valid: {error.message}"
        return SYSTEM_ERROR_MESSAGE

    def describe(self, error: Exception) -> Tuple[ErrorSeverity, str]:
        """
        Classify, count and log an error.

        Args:
            error: Exception raised by a store operation

        Returns:
            Tuple of (severity, user-visible message)
        """
        severity = self.classify(error)
        error_type = type(error).__name__
        self._error_counts[error_type] = self._error_counts.get(error_type, 0) + 1

        message = f"{error_type}: {error}"
        if severity == ErrorSeverity.CRITICAL:
            self.logger.critical(message)
        elif severity == ErrorSeverity.HIGH:
            self.logger.error(message)
        elif severity == ErrorSeverity.MEDIUM:
            self.logger.warning(message)
        else:
            self.logger.info(message)

        return severity, self.user_message(error)

    def is_concurrent_edit(self, error: Exception) -> bool:
        return isinstance(error, RetriesExhaustedError) and error.concurrent_edit

    def get_error_statistics(self) -> Dict[str, Any]:
        return {
            "total_errors": sum(self._error_counts.values()),
            "error_counts_by_type": self._error_counts.copy()
        }

    def to_record(self, error: Exception) -> Dict[str, Any]:
        """Serializable record of an error, for API responses or audit logs."""
        if isinstance(error, StoreError):
            record = error.to_dict()
        else:
            record = {"error_type": type(error).__name__, "message": str(error)}
        record["severity"] = self.classify(error).value
        record["user_message"] = self.user_message(error)
        return record
