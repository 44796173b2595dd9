"""
Session and stored item models.

Session mirrors the Shopify API session record. Stored field names use the
same camelCase spelling as the Shopify JavaScript libraries, so containers
can be shared with Node.js apps using @shopify/shopify-app-session-storage.

Caller-defined attributes that are not part of the Shopify session live in
the explicit ``extra`` map. They are flattened into the stored document and
collected back into ``extra`` when the document is read.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Attribute names reserved by Cosmos DB for system metadata
COSMOS_SYSTEM_FIELDS = frozenset({"_rid", "_self", "_etag", "_attachments", "_ts"})


def _scope_set(scopes: Union[str, Iterable[str], None]) -> set[str]:
    """
    Normalize a scope string or list into a set, expanding implied scopes.

    A write_<resource> scope implies read_<resource>, and an
    unauthenticated_write_<resource> scope implies the matching
    unauthenticated_read_<resource>.
    """
    if scopes is None:
        return set()
    if isinstance(scopes, str):
        scopes = scopes.split(",")

    result = {scope.strip() for scope in scopes if scope and scope.strip()}
    implied = set()
    for scope in result:
        prefix, _, resource = scope.partition("write_")
        if resource and prefix in ("", "unauthenticated_"):
            implied.add(f"{prefix}read_{resource}")
    return result | implied


class Session(BaseModel):
    """
    A Shopify authorization session.

    Attributes:
        id: Unique session identifier
        shop: Shop domain the session belongs to
        state: OAuth state token
        is_online: Whether this is an online (user) session
        scope: Comma-separated granted scopes; may exceed 255 characters
        expires: Expiry timestamp; None means the session never expires
        access_token: Shopify access token
        online_access_info: Associated user payload for online sessions
        extra: Caller-defined attributes preserved through storage
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    shop: str = Field(..., min_length=1)
    state: str = ""
    is_online: bool = Field(default=False, alias="isOnline")
    scope: Optional[str] = None
    expires: Optional[datetime] = None
    access_token: Optional[str] = Field(default=None, alias="accessToken")
    online_access_info: Optional[dict[str, Any]] = Field(
        default=None, alias="onlineAccessInfo"
    )
    extra: dict[str, Any] = Field(default_factory=dict, exclude=True)

    @classmethod
    def known_fields(cls) -> frozenset[str]:
        """Stored (aliased) names of the typed session attributes."""
        return frozenset(
            info.alias or name
            for name, info in cls.model_fields.items()
            if name != "extra"
        )

    def to_property_dict(self) -> dict[str, Any]:
        """
        Flatten the session into a JSON-compatible dict.

        Typed attributes use their stored names and ISO-8601 datetimes;
        ``extra`` entries are merged at the top level without overriding
        typed attributes.
        """
        properties = self.model_dump(by_alias=True, mode="json")
        for key, value in self.extra.items():
            properties.setdefault(key, value)
        return properties

    @classmethod
    def from_property_dict(cls, properties: dict[str, Any]) -> "Session":
        """
        Build a session from a flattened property dict.

        Keys that are not typed attributes are collected into ``extra``.
        """
        known = cls.known_fields()
        typed = {key: value for key, value in properties.items() if key in known}
        extra = {key: value for key, value in properties.items() if key not in known}
        return cls(**typed, extra=extra)

    def is_expired(self, within: timedelta = timedelta(0)) -> bool:
        """
        Check whether the session expires within the given window.

        Naive expiry timestamps are treated as UTC.
        """
        if self.expires is None:
            return False
        expires = self.expires
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return expires - within < datetime.now(timezone.utc)

    def is_scope_changed(self, scopes: Union[str, Iterable[str]]) -> bool:
        """Whether the requested scopes differ from the granted ones."""
        return _scope_set(scopes) != _scope_set(self.scope)

    def is_scope_included(self, scopes: Union[str, Iterable[str]]) -> bool:
        """Whether every requested scope was granted, counting implied scopes."""
        return _scope_set(scopes) <= _scope_set(self.scope)

    def is_active(
        self,
        scopes: Union[str, Iterable[str]],
        within: timedelta = timedelta(milliseconds=500)
    ) -> bool:
        """
        Check whether the session can be used for the given scopes.

        A session is active when it has an access token, is not about to
        expire, and was granted every requested scope.
        """
        return (
            self.is_scope_included(scopes)
            and bool(self.access_token)
            and not self.is_expired(within)
        )


@dataclass
class StoredItem:
    """
    A session as written to the Cosmos DB container.

    The partition key is always an optional field of the same type: it is
    set only when the container uses a partition key path other than /id,
    and is then written under ``partition_key_attribute``.

    Attributes:
        properties: Flattened session attributes
        partition_key_attribute: Attribute name derived from the path
        partition_key: Resolved partition key value, if injected
    """
    properties: dict[str, Any] = field(default_factory=dict)
    partition_key_attribute: Optional[str] = None
    partition_key: Optional[str] = None

    @property
    def id(self) -> str:
        return self.properties["id"]

    def to_dict(self) -> dict[str, Any]:
        """Convert to the document body sent to Cosmos DB."""
        document = dict(self.properties)
        if self.partition_key_attribute and self.partition_key is not None:
            document[self.partition_key_attribute] = self.partition_key
        return document
