"""
Custom exceptions for the content store.
"""

from typing import Optional, Dict, Any, List


class StoreError(Exception):
    """
    Base exception for all content store errors.

    Every failure raised by the readers and the committer derives from this
    class, so callers can catch the whole taxonomy in one place while still
    having the kind, the remote diagnostic and the cause available.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        """
        Initialize content store error.

        Args:
            message: Error message
            error_code: Optional error code for categorization
            context: Additional context information
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None
        }

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [self.message]

        if self.error_code:
            parts.append(f"Code: {self.error_code}")

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"Context: {context_str}")

        if self.cause:
            parts.append(f"Caused by: {self.cause}")

        return " | ".join(parts)


class RemoteError(StoreError):
    """
    Exception for failures reported by, or on the way to, the contents API.

    Carries the HTTP status (when a response was received), the request path
    and the remote diagnostic message.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        status_code: Optional[int] = None,
        remote_message: Optional[str] = None,
        **kwargs
    ):
        """
        Initialize remote error.

        Args:
            message: Error message
            path: Repository-relative path the request was for
            status_code: HTTP status code if a response was received
            remote_message: Diagnostic message returned by the API
            **kwargs: Additional arguments for base class
        """
        context = kwargs.get('context', {})
        if path:
            context['path'] = path
        if status_code:
            context['status_code'] = status_code

        kwargs['context'] = context
        super().__init__(message, **kwargs)

        self.path = path
        self.status_code = status_code
        self.remote_message = remote_message


class NotFoundError(RemoteError):
    """
    The remote has no blob at the requested path.

    Readers turn this into the schema fallback value; it only escapes to
    callers that use the low-level contents client directly.
    """

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('error_code', 'not_found')
        kwargs.setdefault('status_code', 404)
        super().__init__(message, **kwargs)


class ConflictError(RemoteError):
    """
    A write was rejected because the revision token it carried is stale.

    Retried internally by the committer; surfaced only as the last error of
    a RetriesExhaustedError.
    """

    def __init__(
        self,
        message: str,
        expected_token: Optional[str] = None,
        current_token: Optional[str] = None,
        **kwargs
    ):
        kwargs.setdefault('error_code', 'conflict')
        context = kwargs.get('context', {})
        if expected_token:
            context['expected_token'] = expected_token
        if current_token:
            context['current_token'] = current_token
        kwargs['context'] = context
        super().__init__(message, **kwargs)

        self.expected_token = expected_token
        self.current_token = current_token


class AuthFailureError(RemoteError):
    """The credential was rejected. Never retried."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('error_code', 'auth_failure')
        super().__init__(message, **kwargs)


class RemoteUnavailableError(RemoteError):
    """
    Transport or server failure distinct from a conflict or an auth failure.

    ``transient`` is True for network errors, timeouts and 5xx responses.
    Client errors (4xx other than conflict/auth) are not transient.
    """

    def __init__(self, message: str, transient: bool = False, **kwargs):
        kwargs.setdefault('error_code', 'remote_unavailable')
        super().__init__(message, **kwargs)
        self.transient = transient


class RetriesExhaustedError(StoreError):
    """
    The write-attempt budget was consumed without a successful commit.

    This is the "someone else updated this content" outcome and must be
    reported differently from a hard failure.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        attempts: Optional[int] = None,
        last_error: Optional[Exception] = None,
        **kwargs
    ):
        kwargs.setdefault('error_code', 'retries_exhausted')
        context = kwargs.get('context', {})
        if path:
            context['path'] = path
        if attempts:
            context['attempts'] = attempts

        kwargs['context'] = context
        kwargs.setdefault('cause', last_error)
        super().__init__(message, **kwargs)

        self.path = path
        self.attempts = attempts
        self.last_error = last_error

    @property
    def concurrent_edit(self) -> bool:
        """True when the final attempt lost to another writer."""
        return isinstance(self.last_error, ConflictError)


class SchemaValidationError(StoreError):
    """
    Payload is malformed or does not match the schema registered for its path.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        invalid_fields: Optional[List[str]] = None,
        **kwargs
    ):
        kwargs.setdefault('error_code', 'invalid_payload')
        context = kwargs.get('context', {})
        if path:
            context['path'] = path
        if invalid_fields:
            context['invalid_fields'] = invalid_fields

        kwargs['context'] = context
        super().__init__(message, **kwargs)

        self.path = path
        self.invalid_fields = invalid_fields or []


class ConfigurationError(StoreError):
    """
    Exception for configuration errors.

    Raised when configuration cannot be loaded or validated, including the
    fatal startup case of missing repository coordinates.
    """

    def __init__(
        self,
        message: str,
        config_section: Optional[str] = None,
        config_key: Optional[str] = None,
        **kwargs
    ):
        """
        Initialize configuration error.

        Args:
            message: Error message
            config_section: Configuration section with error
            config_key: Specific configuration key with error
            **kwargs: Additional arguments for base class
        """
        context = kwargs.get('context', {})
        if config_section:
            context['config_section'] = config_section
        if config_key:
            context['config_key'] = config_key

        kwargs['context'] = context
        super().__init__(message, **kwargs)

        self.config_section = config_section
        self.config_key = config_key
