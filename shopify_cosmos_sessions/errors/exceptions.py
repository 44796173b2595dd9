"""
Exception classes for the Cosmos DB session storage adapter.

This module provides the SessionStorageError base class, one subclass per
failure category, and convenience factory functions that build them with
the right error code and default message.
"""

from typing import Any, Optional

from shopify_cosmos_sessions.errors.codes import ErrorCode, get_default_message


class SessionStorageError(Exception):
    """
    Base exception class for all adapter errors.

    This exception provides structured error information including:
    - error_code: A standardized error code from the ErrorCode enum
    - message: A human-readable error message
    - details: Optional additional context (e.g., the wrapped cause)

    Example:
        raise SessionStorageError(
            error_code=ErrorCode.INITIALIZATION_FAILED,
            message="Failed to initialize storage.",
            details={"status_code": 503}
        )
    """

    def __init__(
        self,
        error_code: ErrorCode,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None
    ):
        """
        Initialize a SessionStorageError.

        Args:
            error_code: The error code from the ErrorCode enum
            message: A human-readable error message (defaults to the
                error code's default message)
            details: Optional dictionary with additional error context
        """
        self.error_code = error_code
        self.message = message or get_default_message(error_code)
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the exception to a dictionary for structured logging.

        Returns:
            Dictionary containing error_code, message, and details
        """
        result = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details is not None:
            result["details"] = self.details
        return result

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(error_code={self.error_code.value!r}, "
            f"message={self.message!r}, details={self.details!r})"
        )


class ConfigurationError(SessionStorageError):
    """Missing or malformed connection settings, detected before any attempt."""


class PartitionKeyConfigError(SessionStorageError):
    """A non-default partition key path is used without the matching callback."""


class AuthenticationError(SessionStorageError):
    """Cosmos DB rejected the credentials. Never retried."""


class InitializationTimeoutError(SessionStorageError, TimeoutError):
    """The last initialization attempt exceeded its deadline."""


class InitializationError(SessionStorageError):
    """
    The retry budget was exhausted for a non-auth, non-timeout cause.

    The last underlying exception is kept on ``cause`` and chained via
    ``raise ... from``; its type, status code and message are copied
    into ``details``.
    """

    def __init__(
        self,
        message: Optional[str] = None,
        cause: Optional[BaseException] = None,
        details: Optional[dict[str, Any]] = None
    ):
        self.cause = cause
        super().__init__(
            error_code=ErrorCode.INITIALIZATION_FAILED,
            message=message,
            details=details
        )


def describe_cause(error: BaseException) -> dict[str, Any]:
    """Extract the type, status code and message of an underlying error."""
    info: dict[str, Any] = {
        "error_type": type(error).__name__,
        "error_message": getattr(error, "message", None) or str(error),
    }
    status_code = getattr(error, "status_code", None)
    if status_code is not None:
        info["status_code"] = status_code
    return info


# Convenience factory functions for common error types

def no_connection(
    message: Optional[str] = None,
    details: Optional[dict[str, Any]] = None
) -> ConfigurationError:
    """Create an error for a missing connection string and client."""
    return ConfigurationError(
        error_code=ErrorCode.NO_CONNECTION,
        message=message,
        details=details
    )


def configuration_error(
    message: str,
    details: Optional[dict[str, Any]] = None
) -> ConfigurationError:
    """Create a generic configuration error."""
    return ConfigurationError(
        error_code=ErrorCode.CONFIGURATION_ERROR,
        message=message,
        details=details
    )


def invalid_credentials(
    message: Optional[str] = None,
    details: Optional[dict[str, Any]] = None
) -> ConfigurationError:
    """Create an error for an empty endpoint or key."""
    return ConfigurationError(
        error_code=ErrorCode.INVALID_CREDENTIALS,
        message=message,
        details=details
    )


def authentication_failed(
    cause: BaseException,
    message: Optional[str] = None
) -> AuthenticationError:
    """Create an error for credentials rejected by the backend."""
    return AuthenticationError(
        error_code=ErrorCode.INVALID_CREDENTIALS,
        message=message,
        details=describe_cause(cause)
    )


def partition_key_by_id_missing(
    details: Optional[dict[str, Any]] = None
) -> PartitionKeyConfigError:
    """Create an error for a missing get_partition_key_by_id callback."""
    return PartitionKeyConfigError(
        error_code=ErrorCode.PARTITION_KEY_ID,
        details=details
    )


def partition_key_by_shop_missing(
    details: Optional[dict[str, Any]] = None
) -> PartitionKeyConfigError:
    """Create an error for a missing get_partition_key_by_shop callback."""
    return PartitionKeyConfigError(
        error_code=ErrorCode.PARTITION_KEY_SHOP,
        details=details
    )


def partition_key_attribute_conflict(
    details: Optional[dict[str, Any]] = None
) -> PartitionKeyConfigError:
    """Create an error for a caller attribute shadowing the partition key."""
    return PartitionKeyConfigError(
        error_code=ErrorCode.PARTITION_KEY_CONFLICT,
        details=details
    )


def initialization_timeout(
    details: Optional[dict[str, Any]] = None
) -> InitializationTimeoutError:
    """Create an initialization timeout error."""
    return InitializationTimeoutError(
        error_code=ErrorCode.TIMEOUT,
        details=details
    )


def initialization_failed(
    cause: BaseException,
    attempts: Optional[int] = None
) -> InitializationError:
    """Create an initialization error wrapping the last underlying cause."""
    details = describe_cause(cause)
    if attempts is not None:
        details["attempts"] = attempts
    return InitializationError(
        message=(
            f"{get_default_message(ErrorCode.INITIALIZATION_FAILED)} "
            f"{details['error_type']}: {details['error_message']}"
        ),
        cause=cause,
        details=details
    )
