"""
Exception handling framework for the job matching core.

This module defines custom exceptions and error handling utilities to ensure:
1. Consistent error reporting across the pipeline
2. Proper logging of errors with context
3. User-friendly error messages
"""
from typing import Any, Callable, Dict, Optional
import logging
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


class BaseError(Exception):
    """Base exception class."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        user_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message for logging
            error_code: Error code for categorizing errors
            user_message: User-friendly error message
            context: Additional context for logging
            original_error: Original exception if wrapping
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.user_message = user_message or message
        self.context = context or {}
        self.original_error = original_error
        self.timestamp = datetime.now(timezone.utc)

        # Add standard context
        self.context.update({
            "error_code": error_code,
            "timestamp": self.timestamp.isoformat(),
            "error_type": self.__class__.__name__
        })

        logger.error(
            message,
            extra={
                "error_code": self.error_code,
                "error_type": self.__class__.__name__,
                "error_context": self.context,
                "original_error": str(self.original_error) if self.original_error else None
            },
            exc_info=self.original_error,
        )


class JobMatchingError(BaseError):
    """Base exception for all pipeline errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        user_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Technical error message for logging
            error_code: Unique error code for tracking
            user_message: User-friendly error message
            context: Additional context for debugging
            original_error: Original exception if this wraps another error
        """
        super().__init__(
            message=message,
            error_code=error_code,
            user_message=user_message or "An unexpected error occurred",
            context=context,
            original_error=original_error,
        )


class ProfileNotFoundError(JobMatchingError):
    """Raised when no user profile can be resolved for scoring."""

    def __init__(
        self,
        user_id: str,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        """Initialize profile error."""
        context = context or {}
        context["user_id"] = user_id
        self.user_id = user_id

        super().__init__(
            message=f"User profile not found for {user_id}",
            error_code="PROFILE_NOT_FOUND",
            user_message="Cannot score without a profile",
            context=context,
            original_error=original_error,
        )


class ScoringError(JobMatchingError):
    """Job scoring errors."""

    def __init__(
        self,
        message: str,
        job_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        """Initialize scoring error."""
        context = context or {}
        if job_id:
            context["job_id"] = job_id

        super().__init__(
            message=message,
            error_code="SCORING_ERROR",
            user_message="Unable to score job",
            context=context,
            original_error=original_error,
        )


class RepositoryError(JobMatchingError):
    """Errors raised by repository backends."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        """Initialize repository error."""
        super().__init__(
            message=message,
            error_code="REPOSITORY_ERROR",
            user_message="A storage error occurred",
            context=self._sanitize_context(context),
            original_error=original_error,
        )

    def _sanitize_context(self, context: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Remove sensitive information from context."""
        if not context:
            return {}

        safe_context = context.copy()

        sensitive_fields = {"password", "token", "secret", "key"}
        for field in sensitive_fields:
            if field in safe_context:
                safe_context[field] = "[REDACTED]"

        return safe_context


class ValidationError(JobMatchingError):
    """Data validation errors."""

    def __init__(
        self,
        message: str,
        field: str,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        """Initialize validation error."""
        context = context or {}
        context["field"] = field

        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            user_message=f"Invalid data provided for {field}",
            context=context,
            original_error=original_error,
        )


class ServiceError(JobMatchingError):
    """Service-related errors."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        """Initialize service error."""
        super().__init__(
            message=message,
            error_code="SERVICE_ERROR",
            user_message="An error occurred in the service",
            context=context,
            original_error=original_error,
        )


def handle_error(error: Exception) -> Dict[str, Any]:
    """Convert any error to a standardized response format.

    Args:
        error: The exception to handle

    Returns:
        Dict containing error details in a standard format
    """
    if isinstance(error, BaseError):
        return {
            "error": True,
            "error_code": error.error_code,
            "message": error.user_message,
            "details": error.context
        }

    wrapped_error = JobMatchingError(
        message=str(error),
        error_code="UNKNOWN_ERROR",
        user_message="An unexpected error occurred",
        original_error=error
    )

    return {
        "error": True,
        "error_code": wrapped_error.error_code,
        "message": wrapped_error.user_message,
        "details": wrapped_error.context
    }


def safe_execute(func: Callable[[], Any], error_message: str, **kwargs: Any) -> Any:
    """Safely execute a function with error handling.

    Args:
        func: Function to execute
        error_message: Message to use if an error occurs
        **kwargs: Additional context to include in error

    Returns:
        The function's return value

    Raises:
        JobMatchingError: If an error occurs during execution
    """
    try:
        return func()
    except Exception as e:
        if isinstance(e, JobMatchingError):
            raise

        raise JobMatchingError(
            message=error_message,
            error_code="EXECUTION_ERROR",
            context=kwargs,
            original_error=e
        ) from e
