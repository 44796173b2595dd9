"""
Session storage abstraction.

This module defines the abstract interface for session storage backends
used by Shopify apps to persist OAuth sessions between requests. The
interface matches the SessionStorage contract of the Shopify app
libraries: every mutation reports success with a boolean and a missing
session is a None result, never an error.
"""

from abc import ABC, abstractmethod
from typing import Optional

from shopify_cosmos_sessions.session.models import Session


class SessionStorage(ABC):
    """
    Abstract base class for session storage implementations.

    All methods are async to support non-blocking I/O operations with
    external storage systems.
    """

    @abstractmethod
    async def store_session(self, session: Session) -> bool:
        """
        Store a session, replacing any session with the same id.

        Args:
            session: The session to store.

        Returns:
            True once the session has been written.

        Raises:
            SessionStorageError: If the storage is misconfigured or could
                not be initialized.
        """
        pass

    @abstractmethod
    async def load_session(self, session_id: str) -> Optional[Session]:
        """
        Retrieve a session by id.

        Args:
            session_id: Unique identifier for the session.

        Returns:
            The session if found, None if it does not exist.
        """
        pass

    @abstractmethod
    async def delete_session(self, session_id: str) -> bool:
        """
        Delete a session by id.

        This operation is idempotent - deleting a non-existent
        session does not raise an error.

        Args:
            session_id: Unique identifier for the session to delete.

        Returns:
            True whether or not the session existed.
        """
        pass

    @abstractmethod
    async def delete_sessions(self, session_ids: list[str]) -> bool:
        """
        Delete several sessions by id.

        Args:
            session_ids: Identifiers of the sessions to delete.

        Returns:
            True once the deletions have been submitted.
        """
        pass

    @abstractmethod
    async def find_sessions_by_shop(self, shop: str) -> list[Session]:
        """
        Find every session belonging to a shop.

        Args:
            shop: Shop domain, e.g. "example.myshopify.com".

        Returns:
            All sessions whose shop equals the given domain.
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check connectivity and health of the session storage.

        Returns:
            True if the storage is healthy and accessible, False otherwise.

        Note:
            This method should not raise exceptions - connectivity issues
            should be caught and result in a False return value.
        """
        pass
