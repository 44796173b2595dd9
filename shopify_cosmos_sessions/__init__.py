"""
Azure Cosmos DB session storage for Shopify apps.

Stores, loads and queries Shopify OAuth sessions in a Cosmos DB container,
provisioning the database and container once per adapter with bounded
retries.
"""

from shopify_cosmos_sessions.config import (
    CosmosDBSessionStorageOptions,
    CosmosSettings,
)
from shopify_cosmos_sessions.errors import (
    AuthenticationError,
    ConfigurationError,
    ErrorCode,
    InitializationError,
    InitializationTimeoutError,
    PartitionKeyConfigError,
    SessionStorageError,
)
from shopify_cosmos_sessions.resilience import RetryConfig
from shopify_cosmos_sessions.session import (
    CosmosDBSessionStorage,
    Session,
    SessionStorage,
)

__version__ = "1.0.0"

__all__ = [
    "CosmosDBSessionStorage",
    "CosmosDBSessionStorageOptions",
    "CosmosSettings",
    "RetryConfig",
    "Session",
    "SessionStorage",
    "ErrorCode",
    "SessionStorageError",
    "ConfigurationError",
    "PartitionKeyConfigError",
    "AuthenticationError",
    "InitializationTimeoutError",
    "InitializationError",
]
