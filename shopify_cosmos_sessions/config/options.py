"""
Runtime options for CosmosDBSessionStorage.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Optional

from shopify_cosmos_sessions.resilience.retry import RetryConfig

DEFAULT_CONTAINER_NAME = "shopify_sessions"
DEFAULT_PARTITION_KEY_PATH = "/id"

PartitionKeyCallback = Callable[[str], str]


@dataclass
class CosmosDBSessionStorageOptions:
    """
    Options for the Cosmos DB session storage adapter.

    Attributes:
        container_name: Container holding session documents.
            Default is "shopify_sessions".
        partition_key_path: Container partition key path. Default is "/id".
            Any other path requires both partition key callbacks.
        get_partition_key_by_id: Derives the partition key from a session id
        get_partition_key_by_shop: Derives the partition key from a shop domain
        container_options: Extra keyword arguments forwarded to
            create_container_if_not_exists (e.g. default_ttl)
        retry: Initialization retry schedule
    """
    container_name: str = DEFAULT_CONTAINER_NAME
    partition_key_path: str = DEFAULT_PARTITION_KEY_PATH
    get_partition_key_by_id: Optional[PartitionKeyCallback] = None
    get_partition_key_by_shop: Optional[PartitionKeyCallback] = None
    container_options: dict[str, Any] = field(default_factory=dict)
    retry: RetryConfig = field(default_factory=RetryConfig)

    def merged(self, **overrides: Any) -> "CosmosDBSessionStorageOptions":
        """Return a copy with the given fields replaced; None values are ignored."""
        return replace(
            self,
            **{key: value for key, value in overrides.items() if value is not None}
        )
