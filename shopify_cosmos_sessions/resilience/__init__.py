"""
Resilience patterns for the session storage adapter.

This package provides the retry schedule and the one-time initialization
supervisor that provisions the Cosmos DB database and container.
"""

from shopify_cosmos_sessions.resilience.initialization import (
    InitializationSupervisor,
    InitState,
    is_authentication_error,
)
from shopify_cosmos_sessions.resilience.retry import (
    RetryConfig,
    calculate_delay,
)

__all__ = [
    # Initialization
    "InitializationSupervisor",
    "InitState",
    "is_authentication_error",
    # Retry
    "RetryConfig",
    "calculate_delay",
]
