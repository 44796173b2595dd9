"""
Error handling module for the Cosmos DB session storage adapter.

This module provides structured error handling with:
- ErrorCode enum for standardized error codes
- SessionStorageError and its subclasses, one per failure category
- Factory functions that build errors with default messages
"""

from shopify_cosmos_sessions.errors.codes import ErrorCode, get_default_message
from shopify_cosmos_sessions.errors.exceptions import (
    AuthenticationError,
    ConfigurationError,
    InitializationError,
    InitializationTimeoutError,
    PartitionKeyConfigError,
    SessionStorageError,
)

__all__ = [
    "ErrorCode",
    "get_default_message",
    "SessionStorageError",
    "ConfigurationError",
    "PartitionKeyConfigError",
    "AuthenticationError",
    "InitializationTimeoutError",
    "InitializationError",
]
