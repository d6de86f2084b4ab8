"""
Exception hierarchy for the localization pipeline.

Errors raised by the content store, the translation backend and the
pipeline itself all derive from LocalizationError so callers can catch
them at the per-locale boundary.
"""

from typing import Optional, Dict, Any, List


class LocalizationError(Exception):
    """Base exception for all localization errors.

    Attributes:
        message: Human-readable error message
        context: Additional context about the error
        recoverable: Whether the error can potentially be recovered from
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        recoverable: bool = False
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"{self.__class__.__name__}: {self.message}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base += f" (context: {context_str})"
        return base


# ============================================================================
# Remote service errors (content store and translation backend)
# ============================================================================

class RemoteServiceError(LocalizationError):
    """Base exception for errors reported by a remote HTTP service."""
    pass


class TransientNetworkError(RemoteServiceError):
    """Raised when the connection fails or times out.

    This is recoverable by retrying the request.
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context, recoverable=True)


class RateLimitError(RemoteServiceError):
    """Raised when the remote service answers 429.

    This is recoverable by waiting and retrying.
    """

    def __init__(
        self,
        message: str,
        retry_after: Optional[float] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        ctx = context or {}
        if retry_after is not None:
            ctx['retry_after'] = retry_after
        super().__init__(message, ctx, recoverable=True)
        self.retry_after = retry_after


class AuthenticationError(RemoteServiceError):
    """Raised when authentication fails (missing/invalid token).

    This is NOT recoverable without user intervention.
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context, recoverable=False)


class ContentNotFoundError(RemoteServiceError):
    """Raised when a page, component or collection does not exist."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context, recoverable=False)


class RequestFailedError(RemoteServiceError):
    """Raised for any other non-success answer from a remote service.

    Attributes:
        status_code: HTTP status code
        body: Raw response body
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: str = "",
        context: Optional[Dict[str, Any]] = None
    ):
        ctx = context or {}
        if status_code is not None:
            ctx['status_code'] = status_code
        if body:
            ctx['body'] = body[:200]
        super().__init__(message, ctx, recoverable=False)
        self.status_code = status_code
        self.body = body


class StructuralValidationError(LocalizationError):
    """Raised when the store still rejects content after the corrective retry.

    Attributes:
        field_errors: The per-node errors reported by the store
    """

    def __init__(
        self,
        message: str,
        field_errors: Optional[List[Any]] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.field_errors = list(field_errors or [])
        ctx = context or {}
        if self.field_errors:
            ctx['nodes'] = ",".join(fe.node_id for fe in self.field_errors)
        super().__init__(message, ctx, recoverable=False)


# ============================================================================
# Translation backend errors
# ============================================================================

class TranslationBackendError(LocalizationError):
    """Raised when the translation backend fails or answers unusably."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context, recoverable=True)


# ============================================================================
# Retry exhaustion / configuration
# ============================================================================

class RetryExhaustedError(LocalizationError):
    """Raised when all retry attempts have been exhausted.

    Attributes:
        original_error: The original error that triggered retries
        attempts: Number of attempts made
    """

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        attempts: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        ctx = context or {}
        if original_error:
            ctx['original_error'] = str(original_error)
            ctx['original_error_type'] = type(original_error).__name__
        if attempts is not None:
            ctx['attempts'] = attempts
        super().__init__(message, ctx, recoverable=False)
        self.original_error = original_error
        self.attempts = attempts


class ConfigurationError(LocalizationError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context, recoverable=False)
