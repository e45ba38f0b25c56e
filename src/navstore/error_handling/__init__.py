"""
Error taxonomy, retry policy and error reporting for the content store.
"""

from .exceptions import (
    StoreError, RemoteError, NotFoundError, ConflictError, AuthFailureError,
    RemoteUnavailableError, RetriesExhaustedError, SchemaValidationError,
    ConfigurationError
)
from .error_handler import ErrorHandler, ErrorSeverity, CONCURRENT_EDIT_MESSAGE
from .retry_policy import RetryPolicy, AttemptTracker, AttemptState

__all__ = [
    "StoreError",
    "RemoteError",
    "NotFoundError",
    "ConflictError",
    "AuthFailureError",
    "RemoteUnavailableError",
    "RetriesExhaustedError",
    "SchemaValidationError",
    "ConfigurationError",
    "ErrorHandler",
    "ErrorSeverity",
    "CONCURRENT_EDIT_MESSAGE",
    "RetryPolicy",
    "AttemptTracker",
    "AttemptState"
]
