"""
Session storage module.

This module provides the Session model, the SessionStorage interface, and
the Cosmos DB implementation with its partition key resolver and codec.
"""

from shopify_cosmos_sessions.session.models import Session, StoredItem
from shopify_cosmos_sessions.session.partition import (
    DEFAULT_PARTITION_KEY_PATH,
    PartitionKeyResolver,
)
from shopify_cosmos_sessions.session.codec import SessionCodec
from shopify_cosmos_sessions.session.store import SessionStorage
from shopify_cosmos_sessions.session.cosmos_store import CosmosDBSessionStorage

__all__ = [
    "Session",
    "StoredItem",
    "DEFAULT_PARTITION_KEY_PATH",
    "PartitionKeyResolver",
    "SessionCodec",
    "SessionStorage",
    "CosmosDBSessionStorage",
]
