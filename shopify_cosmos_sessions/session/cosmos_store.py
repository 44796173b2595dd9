"""
Azure Cosmos DB session storage implementation.

This module provides a Cosmos DB backed implementation of the
SessionStorage interface. The database and container are provisioned once
per adapter by an InitializationSupervisor; every operation waits for that
shared initialization before touching the container, so callers that never
await ready() still see initialization failures on their first call.

Example:
    storage = CosmosDBSessionStorage.with_connection_string(
        os.environ["COSMOS_CONNECTION_STRING"], "shopify"
    )
    await storage.store_session(session)
    loaded = await storage.load_session(session.id)
    await storage.disconnect()
"""

import asyncio
import logging
from typing import Any, Optional

from azure.cosmos import PartitionKey
from azure.cosmos.aio import ContainerProxy, CosmosClient
from azure.cosmos.exceptions import (
    CosmosBatchOperationError,
    CosmosResourceNotFoundError,
)

from shopify_cosmos_sessions.config.options import CosmosDBSessionStorageOptions
from shopify_cosmos_sessions.config.settings import CosmosSettings, get_settings
from shopify_cosmos_sessions.errors.exceptions import (
    configuration_error,
    describe_cause,
    invalid_credentials,
    no_connection,
)
from shopify_cosmos_sessions.resilience.initialization import InitializationSupervisor
from shopify_cosmos_sessions.session.codec import SessionCodec
from shopify_cosmos_sessions.session.models import Session
from shopify_cosmos_sessions.session.partition import (
    PartitionKeyCallback,
    PartitionKeyResolver,
)
from shopify_cosmos_sessions.session.store import SessionStorage
from shopify_cosmos_sessions.telemetry import configure_logging, start_span

logger = logging.getLogger(__name__)

FIND_BY_SHOP_QUERY = "SELECT * FROM Sessions c WHERE c.shop = @shop"

# Cosmos DB accepts at most 100 operations per transactional batch
MAX_BATCH_OPERATIONS = 100

NOT_FOUND_STATUS = 404


def _batch_failed_on_missing_item(error: CosmosBatchOperationError) -> bool:
    """Whether a batch was rejected because one of its items does not exist."""
    responses = error.operation_responses or []
    if error.error_index is not None and error.error_index < len(responses):
        return responses[error.error_index].get("statusCode") == NOT_FOUND_STATUS
    return error.status_code == NOT_FOUND_STATUS


class CosmosDBSessionStorage(SessionStorage):
    """
    Cosmos DB backed session storage for Shopify apps.

    Use one of the with_credentials, with_connection_string, with_client
    or from_settings constructors. Construction validates its arguments
    synchronously and starts initialization in the background when an
    event loop is running; otherwise initialization starts with the first
    call to ready() or to any storage operation.

    The Cosmos client is owned by this instance. It is created once, at
    the start of initialization, and closed by disconnect().

    Attributes:
        db_name: Database holding the sessions container
        options: Container and partition key options
        initialization: Supervisor running the one-time provisioning
    """

    def __init__(
        self,
        db_name: str,
        *,
        connection_string: Optional[str] = None,
        endpoint: Optional[str] = None,
        key: Optional[str] = None,
        client: Optional[CosmosClient] = None,
        options: Optional[CosmosDBSessionStorageOptions] = None
    ):
        """
        Validate connection arguments and prepare initialization.

        Prefer the named constructors; exactly one connection descriptor
        (connection string, endpoint and key, or client) is expected.

        Raises:
            ConfigurationError: If no connection descriptor is given, the
                endpoint or key is empty, or the database name is empty.
        """
        if client is None and not connection_string:
            if endpoint is None and key is None:
                raise no_connection()
            if not endpoint or not key:
                raise invalid_credentials(
                    details={"endpoint_provided": bool(endpoint), "key_provided": bool(key)}
                )
        if not db_name or not db_name.strip():
            raise configuration_error("Database name cannot be empty.")

        self.db_name = db_name
        self.options = options or CosmosDBSessionStorageOptions()

        self._connection_string = connection_string
        self._endpoint = endpoint
        self._key = key
        self._client = client
        self._closed = False

        self._resolver = PartitionKeyResolver(
            path=self.options.partition_key_path,
            by_id=self.options.get_partition_key_by_id,
            by_shop=self.options.get_partition_key_by_shop
        )
        self._codec = SessionCodec(self._resolver)

        self.initialization = InitializationSupervisor(
            self._provision,
            config=self.options.retry,
            name=f"{db_name}/{self.options.container_name}"
        )

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet; the first awaited operation starts initialization
            pass
        else:
            self.initialization.start()

    @classmethod
    def with_credentials(
        cls,
        endpoint: str,
        key: str,
        db_name: str,
        options: Optional[CosmosDBSessionStorageOptions] = None,
        **overrides: Any
    ) -> "CosmosDBSessionStorage":
        """Create storage from an account endpoint and key."""
        return cls(
            db_name,
            endpoint=endpoint,
            key=key,
            options=cls._merge_options(options, overrides)
        )

    @classmethod
    def with_connection_string(
        cls,
        connection_string: str,
        db_name: str,
        options: Optional[CosmosDBSessionStorageOptions] = None,
        **overrides: Any
    ) -> "CosmosDBSessionStorage":
        """Create storage from an AccountEndpoint=...;AccountKey=... string."""
        return cls(
            db_name,
            connection_string=connection_string,
            options=cls._merge_options(options, overrides)
        )

    @classmethod
    def with_client(
        cls,
        client: CosmosClient,
        db_name: str,
        options: Optional[CosmosDBSessionStorageOptions] = None,
        **overrides: Any
    ) -> "CosmosDBSessionStorage":
        """Create storage around an existing azure.cosmos.aio.CosmosClient."""
        return cls(
            db_name,
            client=client,
            options=cls._merge_options(options, overrides)
        )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[CosmosSettings] = None,
        get_partition_key_by_id: Optional[PartitionKeyCallback] = None,
        get_partition_key_by_shop: Optional[PartitionKeyCallback] = None,
        **container_options: Any
    ) -> "CosmosDBSessionStorage":
        """
        Create storage from COSMOS_* environment settings.

        Also attaches the JSON log handler to the package logger at the
        configured log_level.

        Args:
            settings: Settings to use; loaded from the environment if omitted
            get_partition_key_by_id: Partition key callback for id lookups
            get_partition_key_by_shop: Partition key callback for shop queries
            **container_options: Forwarded to create_container_if_not_exists

        Raises:
            ConfigurationError: If the settings are missing or invalid.
        """
        settings = settings or get_settings()
        configure_logging(settings.log_level)
        options = settings.to_options(
            get_partition_key_by_id=get_partition_key_by_id,
            get_partition_key_by_shop=get_partition_key_by_shop,
            **container_options
        )
        if settings.connection_string:
            return cls.with_connection_string(
                settings.connection_string, settings.database, options
            )
        return cls.with_credentials(
            settings.endpoint, settings.key, settings.database, options
        )

    @staticmethod
    def _merge_options(
        options: Optional[CosmosDBSessionStorageOptions],
        overrides: dict[str, Any]
    ) -> CosmosDBSessionStorageOptions:
        return (options or CosmosDBSessionStorageOptions()).merged(**overrides)

    async def ready(self) -> None:
        """
        Wait for the one-time initialization to finish.

        Raises:
            AuthenticationError: If Cosmos DB rejected the credentials
            ConfigurationError: If the client could not be created
            InitializationTimeoutError: If the last attempt timed out
            InitializationError: If the retry budget was exhausted
        """
        await self.initialization.wait()

    async def _container(self) -> ContainerProxy:
        return await self.initialization.wait()

    def _ensure_client(self) -> CosmosClient:
        if self._client is not None:
            return self._client

        try:
            if self._connection_string:
                self._client = CosmosClient.from_connection_string(self._connection_string)
            else:
                self._client = CosmosClient(self._endpoint, credential=self._key)
        except (ValueError, KeyError, TypeError) as e:
            raise configuration_error(
                "Could not create Cosmos DB client.",
                details=describe_cause(e)
            ) from e

        return self._client

    async def _provision(self) -> ContainerProxy:
        """Ensure the database and container exist; one initialization attempt."""
        client = self._ensure_client()

        database = await client.create_database_if_not_exists(id=self.db_name)
        container = await database.create_container_if_not_exists(
            id=self.options.container_name,
            partition_key=PartitionKey(path=self.options.partition_key_path),
            **self.options.container_options
        )

        logger.info(
            "Cosmos DB container ready: %s/%s",
            self.db_name,
            self.options.container_name,
            extra={"extra_data": {
                "database": self.db_name,
                "container": self.options.container_name,
                "partition_key_path": self.options.partition_key_path,
            }}
        )
        return container

    async def store_session(self, session: Session) -> bool:
        container = await self._container()
        item = self._codec.encode(session)

        with start_span("upsert_item", {"session.id": session.id}):
            await container.upsert_item(body=item.to_dict())

        logger.debug("Stored session %s", session.id)
        return True

    async def load_session(self, session_id: str) -> Optional[Session]:
        container = await self._container()
        partition_key = self._resolver.by_id(session_id)

        with start_span("read_item", {"session.id": session_id}):
            try:
                document = await container.read_item(
                    item=session_id, partition_key=partition_key
                )
            except CosmosResourceNotFoundError:
                return None

        return self._codec.decode(document)

    async def delete_session(self, session_id: str) -> bool:
        container = await self._container()
        partition_key = self._resolver.by_id(session_id)

        with start_span("delete_item", {"session.id": session_id}):
            try:
                await container.read_item(item=session_id, partition_key=partition_key)
                await container.delete_item(item=session_id, partition_key=partition_key)
            except CosmosResourceNotFoundError:
                logger.debug("Session %s already absent", session_id)
                return True

        logger.debug("Deleted session %s", session_id)
        return True

    async def delete_sessions(self, session_ids: list[str]) -> bool:
        """
        Delete several sessions by id.

        One delete operation is built per id with its own partition key.
        Operations sharing a partition key are submitted together as a
        transactional batch; batches for different keys run concurrently.
        A batch rejected because an item is missing is replayed item by
        item, skipping missing sessions.
        """
        container = await self._container()

        operations: dict[str, list[tuple[str, tuple[str]]]] = {}
        for session_id in session_ids:
            partition_key = self._resolver.by_id(session_id)
            operations.setdefault(partition_key, []).append(("delete", (session_id,)))

        batches = [
            (partition_key, ops[start:start + MAX_BATCH_OPERATIONS])
            for partition_key, ops in operations.items()
            for start in range(0, len(ops), MAX_BATCH_OPERATIONS)
        ]

        with start_span("execute_item_batch", {"batch.count": len(batches)}):
            await asyncio.gather(*(
                self._delete_batch(container, partition_key, batch)
                for partition_key, batch in batches
            ))

        logger.debug(
            "Deleted %d session(s) in %d batch(es)",
            len(session_ids),
            len(batches)
        )
        return True

    async def _delete_batch(
        self,
        container: ContainerProxy,
        partition_key: str,
        batch: list[tuple[str, tuple[str]]]
    ) -> None:
        try:
            await container.execute_item_batch(
                batch_operations=batch, partition_key=partition_key
            )
        except CosmosBatchOperationError as e:
            if not _batch_failed_on_missing_item(e):
                raise
            for _, (session_id,) in batch:
                try:
                    await container.delete_item(item=session_id, partition_key=partition_key)
                except CosmosResourceNotFoundError:
                    continue

    async def find_sessions_by_shop(self, shop: str) -> list[Session]:
        container = await self._container()
        partition_key = self._resolver.by_shop(shop)

        query_kwargs: dict[str, Any] = {}
        if partition_key is not None:
            query_kwargs["partition_key"] = partition_key

        with start_span("query_items", {"session.shop": shop}):
            documents = container.query_items(
                query=FIND_BY_SHOP_QUERY,
                parameters=[{"name": "@shop", "value": shop}],
                **query_kwargs
            )
            return [self._codec.decode(document) async for document in documents]

    async def health_check(self) -> bool:
        """
        Check that initialization succeeded and the container is readable.

        Returns:
            True if the container responds, False otherwise.

        Note:
            This method does not raise exceptions - connectivity issues
            are caught and result in a False return value.
        """
        try:
            container = await self._container()
            await container.read()
            return True
        except Exception as e:
            logger.warning(
                "Session storage health check failed: %s",
                str(e),
                extra={"extra_data": {"error_type": type(e).__name__}}
            )
            return False

    async def disconnect(self) -> None:
        """
        Close the Cosmos client and release its connections.

        Calling this more than once is a no-op. It must not be called while
        other operations are still in flight.
        """
        if self._client is None or self._closed:
            return

        self._closed = True
        await self._client.close()
        logger.info("Cosmos DB session storage disconnected")
