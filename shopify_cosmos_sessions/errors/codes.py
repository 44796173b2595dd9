"""
Error code catalog for the Cosmos DB session storage adapter.

This module defines all error codes raised by the adapter, covering
configuration problems detected at construction time, partition key
misconfiguration detected per operation, and failures of the one-time
initialization sequence.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """
    Enumeration of all error codes used by the adapter.

    Codes fall into three groups:
    - Configuration errors: raised synchronously before any network call
    - Partition key errors: raised by the operation that needs the key
    - Initialization errors: surfaced through the shared readiness signal
    """

    # Configuration errors
    NO_CONNECTION = "NO_CONNECTION"
    """Neither a connection string nor a client was provided"""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """A required setting is missing or malformed"""

    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    """Endpoint/key are empty or were rejected by Cosmos DB"""

    # Partition key errors
    PARTITION_KEY_ID = "PARTITION_KEY_ID"
    """Non-default partition key path without get_partition_key_by_id"""

    PARTITION_KEY_SHOP = "PARTITION_KEY_SHOP"
    """Non-default partition key path without get_partition_key_by_shop"""

    PARTITION_KEY_CONFLICT = "PARTITION_KEY_CONFLICT"
    """A caller attribute uses the partition key attribute name"""

    # Initialization errors
    TIMEOUT = "TIMEOUT"
    """An initialization attempt exceeded its deadline"""

    INITIALIZATION_FAILED = "INITIALIZATION_FAILED"
    """Retry budget exhausted while provisioning database/container"""


# Default human-readable message for each error code
DEFAULT_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.NO_CONNECTION: "No connection string or client provided.",
    ErrorCode.CONFIGURATION_ERROR: "Invalid session storage configuration.",
    ErrorCode.INVALID_CREDENTIALS: "Invalid credentials provided.",
    ErrorCode.PARTITION_KEY_ID: (
        "PartitionKey is not ID and get_partition_key_by_id was not defined."
    ),
    ErrorCode.PARTITION_KEY_SHOP: (
        "PartitionKey is not ID and get_partition_key_by_shop was not defined."
    ),
    ErrorCode.PARTITION_KEY_CONFLICT: (
        "Session attribute collides with the partition key attribute."
    ),
    ErrorCode.TIMEOUT: "Operation timed out",
    ErrorCode.INITIALIZATION_FAILED: "Failed to initialize storage.",
}


def get_default_message(error_code: ErrorCode) -> str:
    """
    Get the default message for an error code.

    Args:
        error_code: The error code to look up

    Returns:
        The default message for the error code
    """
    return DEFAULT_MESSAGES.get(error_code, error_code.value)
