"""
Partition key resolution for session documents.

Cosmos DB routes every point read, delete and scoped query by partition
key. With the default /id path the session id is its own partition key;
any other path needs caller-supplied callbacks that derive the key from a
session id or a shop domain.
"""

from typing import Optional

from shopify_cosmos_sessions.config.options import (
    DEFAULT_PARTITION_KEY_PATH,
    PartitionKeyCallback,
)
from shopify_cosmos_sessions.errors.exceptions import (
    partition_key_by_id_missing,
    partition_key_by_shop_missing,
)


class PartitionKeyResolver:
    """
    Maps a session id or shop domain to a partition key.

    Resolution order for both lookups:
    1. The configured callback, if any, regardless of the path
    2. The default /id path: the id itself, or no key (unscoped) for a shop
    3. Otherwise a PartitionKeyConfigError

    Attributes:
        path: Container partition key path, e.g. "/id" or "/shopDomain"
    """

    def __init__(
        self,
        path: str = DEFAULT_PARTITION_KEY_PATH,
        by_id: Optional[PartitionKeyCallback] = None,
        by_shop: Optional[PartitionKeyCallback] = None
    ):
        self.path = path
        self._by_id = by_id
        self._by_shop = by_shop

    @property
    def uses_default_path(self) -> bool:
        """Whether the container is partitioned by session id."""
        return self.path == DEFAULT_PARTITION_KEY_PATH

    @property
    def attribute_name(self) -> str:
        """Document attribute holding the partition key (path without leading /)."""
        return self.path[1:] if self.path.startswith("/") else self.path

    def by_id(self, session_id: str) -> str:
        """
        Resolve the partition key for a session id.

        Raises:
            PartitionKeyConfigError: If the path is not /id and no
                get_partition_key_by_id callback is configured
        """
        if self._by_id is not None:
            return self._by_id(session_id)
        if self.uses_default_path:
            return session_id

        raise partition_key_by_id_missing(details={"path": self.path})

    def by_shop(self, shop: str) -> Optional[str]:
        """
        Resolve the partition key for a shop query.

        Returns:
            The partition key, or None when the query must span partitions

        Raises:
            PartitionKeyConfigError: If the path is not /id and no
                get_partition_key_by_shop callback is configured
        """
        if self._by_shop is not None:
            return self._by_shop(shop)
        if self.uses_default_path:
            return None

        raise partition_key_by_shop_missing(details={"path": self.path})
