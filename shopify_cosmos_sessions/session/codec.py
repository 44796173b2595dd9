"""
Conversion between Session models and Cosmos DB documents.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import TypeAdapter

from shopify_cosmos_sessions.errors.exceptions import partition_key_attribute_conflict
from shopify_cosmos_sessions.session.models import (
    COSMOS_SYSTEM_FIELDS,
    Session,
    StoredItem,
)
from shopify_cosmos_sessions.session.partition import PartitionKeyResolver

_datetime_adapter = TypeAdapter(datetime)


def revive_datetime(value: Any) -> Optional[datetime]:
    """Parse a stored timestamp; None stays None."""
    if value is None or isinstance(value, datetime):
        return value
    return _datetime_adapter.validate_python(value)


class SessionCodec:
    """
    Encodes sessions into stored items and decodes documents back.

    The partition key attribute is injected on encode only for non-default
    partition key paths, and stripped on decode unless it collides with a
    typed session attribute (e.g. a "/shop" path). Because it is stripped,
    a caller-defined attribute with the same name is rejected on encode.
    """

    def __init__(self, resolver: PartitionKeyResolver):
        self.resolver = resolver

    def encode(self, session: Session) -> StoredItem:
        item = StoredItem(properties=session.to_property_dict())

        if not self.resolver.uses_default_path:
            attribute = self.resolver.attribute_name
            if attribute in session.extra and attribute not in Session.known_fields():
                raise partition_key_attribute_conflict(
                    details={"path": self.resolver.path, "attribute": attribute}
                )
            item.partition_key_attribute = attribute
            item.partition_key = self.resolver.by_id(session.id)

        return item

    def parse(self, document: dict[str, Any]) -> StoredItem:
        """Split a raw document into session properties and partition key."""
        properties = {
            key: value
            for key, value in document.items()
            if key not in COSMOS_SYSTEM_FIELDS
        }
        item = StoredItem(properties=properties)

        if not self.resolver.uses_default_path:
            attribute = self.resolver.attribute_name
            item.partition_key_attribute = attribute
            if attribute in Session.known_fields():
                item.partition_key = properties.get(attribute)
            else:
                item.partition_key = properties.pop(attribute, None)

        return item

    def decode(self, document: dict[str, Any]) -> Session:
        properties = self.parse(document).properties
        if properties.get("expires") is not None:
            properties["expires"] = revive_datetime(properties["expires"])
        return Session.from_property_dict(properties)
