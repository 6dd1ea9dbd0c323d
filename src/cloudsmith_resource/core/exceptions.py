"""
Cloudsmith Resource Exception Hierarchy.

Defines all custom exceptions used across the resource.
Provides consistent error handling and debugging information.
"""

from typing import Any


class CloudsmithResourceError(Exception):
    """
    Base exception for all resource errors.

    All custom exceptions inherit from this class, allowing
    generic catch blocks and consistent error handling.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        """
        Initialize a CloudsmithResourceError.

        Args:
            message: Human-readable error message
            details: Optional structured data for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation with details."""
        base = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{base} ({details_str})"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(CloudsmithResourceError):
    """
    Errors in configuration loading.

    Raised when:
    - The input document on stdin is missing or not JSON
    - Required source fields are absent
    - The requested action is not supported
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if field:
            details["field"] = field

        super().__init__(message, details=details)
        self.field = field


class ValidationError(CloudsmithResourceError):
    """
    Errors during data validation.

    Raised for malformed values that would otherwise fail deep inside
    a flow, e.g. a distribution descriptor without its `/` separator.
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a ValidationError.

        Args:
            message: Human-readable error message
            field: Name of the offending field
            value: The rejected value
            details: Optional structured data for debugging
        """
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = value

        super().__init__(message, details=details)
        self.field = field
        self.value = value


class StoreError(CloudsmithResourceError):
    """
    Errors from package store interactions.

    Raised when the store answers with an unexpected status code
    or a response body that cannot be interpreted.
    """

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a StoreError.

        Args:
            message: Human-readable error message
            url: Request URL
            status_code: HTTP status code if applicable
            details: Optional structured data for debugging
        """
        details = details or {}
        if url:
            details["url"] = url
        if status_code:
            details["status_code"] = status_code

        super().__init__(message, details=details)
        self.url = url
        self.status_code = status_code


class RetryExhaustedError(CloudsmithResourceError):
    """Raised when a store call still fails after the last allowed attempt."""

    def __init__(
        self,
        message: str,
        *,
        attempts: int,
        last_error: BaseException | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        details["attempts"] = attempts
        if last_error is not None:
            details["last_error"] = format_exception(last_error)

        super().__init__(message, details=details)
        self.attempts = attempts
        self.last_error = last_error


class NoVersionError(CloudsmithResourceError):
    """Raised when an upload batch yields no version to report."""


def format_exception(error: BaseException) -> str:
    """
    Format an exception for user-friendly display.

    Args:
        error: The exception to format

    Returns:
        Formatted error message string
    """
    if isinstance(error, CloudsmithResourceError):
        return str(error)
    return f"{error.__class__.__name__}: {error}"
