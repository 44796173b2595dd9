"""
Shared pytest fixtures and configuration for all tests.
"""
import asyncio
import os
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Optional

import pytest
from azure.cosmos.exceptions import (
    CosmosBatchOperationError,
    CosmosResourceNotFoundError,
)
# Hypothesis configuration for property-based testing
from hypothesis import Phase, Verbosity, settings

from shopify_cosmos_sessions.resilience.retry import RetryConfig
from shopify_cosmos_sessions.session.models import Session

# Default profile: balanced for local development
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,
    print_blob=True,
)

# CI profile: more thorough testing for continuous integration
settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    derandomize=True,
)

# Debug profile: minimal examples for quick debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


SYSTEM_PROPERTIES = {
    "_rid": "Yk8kAKNBbqcBAAAAAAAAAA==",
    "_self": "dbs/Yk8kAA==/colls/Yk8kAKNBbqc=/docs/Yk8kAKNBbqcBAAAAAAAAAA==/",
    "_etag": "\"0000d92a-0000-0700-0000-6530f0a00000\"",
    "_attachments": "attachments/",
    "_ts": 1697706144,
}


async def _iterate(documents: list[dict[str, Any]]) -> AsyncIterator[dict[str, Any]]:
    for document in documents:
        yield document


class FakeContainer:
    """In-memory stand-in for azure.cosmos.aio.ContainerProxy."""

    def __init__(self, container_id: str, partition_key_path: str):
        self.id = container_id
        self.partition_key_path = partition_key_path
        self.items: dict[tuple[str, Any], dict[str, Any]] = {}
        self.queries: list[dict[str, Any]] = []
        self.batches: list[tuple[Any, list]] = []

    def _partition_key_of(self, body: dict[str, Any]) -> Any:
        return body.get(self.partition_key_path.lstrip("/"))

    @staticmethod
    def _not_found() -> CosmosResourceNotFoundError:
        return CosmosResourceNotFoundError(
            status_code=404,
            message="Entity with the specified id does not exist in the system."
        )

    async def upsert_item(self, body: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
        document = {**body, **SYSTEM_PROPERTIES}
        self.items[(body["id"], self._partition_key_of(body))] = document
        return dict(document)

    async def read_item(self, item: str, partition_key: Any, **kwargs: Any) -> dict[str, Any]:
        if (item, partition_key) not in self.items:
            raise self._not_found()
        return dict(self.items[(item, partition_key)])

    async def delete_item(self, item: str, partition_key: Any, **kwargs: Any) -> None:
        if (item, partition_key) not in self.items:
            raise self._not_found()
        del self.items[(item, partition_key)]

    async def execute_item_batch(
        self,
        batch_operations: list,
        partition_key: Any,
        **kwargs: Any
    ) -> list[dict[str, Any]]:
        self.batches.append((partition_key, list(batch_operations)))

        # Transactional: one missing item fails the whole batch
        for index, (_, args) in enumerate(batch_operations):
            if (args[0], partition_key) not in self.items:
                raise CosmosBatchOperationError(
                    error_index=index,
                    headers={},
                    status_code=404,
                    message="There was an error in the transactional batch.",
                    operation_responses=[
                        {"statusCode": 404 if i == index else 424}
                        for i in range(len(batch_operations))
                    ]
                )

        for _, args in batch_operations:
            del self.items[(args[0], partition_key)]
        return [{"statusCode": 204} for _ in batch_operations]

    def query_items(
        self,
        query: str,
        parameters: Optional[list[dict[str, Any]]] = None,
        **kwargs: Any
    ) -> AsyncIterator[dict[str, Any]]:
        self.queries.append({"query": query, "parameters": parameters, **kwargs})
        shop = parameters[0]["value"]
        scoped = "partition_key" in kwargs
        documents = [
            dict(document)
            for (_, key), document in self.items.items()
            if document.get("shop") == shop
            and (not scoped or key == kwargs["partition_key"])
        ]
        return _iterate(documents)

    async def read(self, **kwargs: Any) -> dict[str, Any]:
        return {"id": self.id, **SYSTEM_PROPERTIES}


class FakeDatabase:
    """In-memory stand-in for azure.cosmos.aio.DatabaseProxy."""

    def __init__(self, database_id: str):
        self.id = database_id
        self.containers: dict[str, FakeContainer] = {}
        self.container_kwargs: dict[str, Any] = {}

    async def create_container_if_not_exists(
        self,
        id: str,
        partition_key: Any,
        **kwargs: Any
    ) -> FakeContainer:
        self.container_kwargs = kwargs
        if id not in self.containers:
            self.containers[id] = FakeContainer(id, partition_key.path)
        return self.containers[id]


class FakeCosmosClient:
    """
    In-memory stand-in for azure.cosmos.aio.CosmosClient.

    Each entry of ``failures`` is consumed by one create_database_if_not_exists
    call: an exception is raised, a number is slept (in seconds) before
    succeeding.
    """

    def __init__(self):
        self.databases: dict[str, FakeDatabase] = {}
        self.failures: list[Any] = []
        self.create_database_calls = 0
        self.close_calls = 0

    async def create_database_if_not_exists(self, id: str, **kwargs: Any) -> FakeDatabase:
        self.create_database_calls += 1
        if self.failures:
            failure = self.failures.pop(0)
            if isinstance(failure, BaseException):
                raise failure
            await asyncio.sleep(failure)
        return self.databases.setdefault(id, FakeDatabase(id))

    async def close(self) -> None:
        self.close_calls += 1

    def container(self, database: str, container: str) -> FakeContainer:
        return self.databases[database].containers[container]


@pytest.fixture
def fake_client() -> FakeCosmosClient:
    """Create an in-memory Cosmos client for unit tests."""
    return FakeCosmosClient()


@pytest.fixture
def fast_retry() -> RetryConfig:
    """Retry schedule with millisecond delays and a short attempt timeout."""
    return RetryConfig(
        max_retries=3,
        initial_delay=0.001,
        max_delay=0.004,
        attempt_timeout=0.05
    )


@pytest.fixture
def sample_session() -> Session:
    """Sample offline session with an access token."""
    return Session(
        id="offline_example.myshopify.com",
        shop="example.myshopify.com",
        state="state",
        is_online=False,
        scope="read_products,write_orders",
        access_token="shpat_123",
    )


@pytest.fixture
def expiring_session() -> Session:
    """Sample online session expiring in one hour."""
    return Session(
        id="online_example.myshopify.com_42",
        shop="example.myshopify.com",
        state="state",
        is_online=True,
        scope="read_products",
        expires=datetime.now(timezone.utc).replace(microsecond=0) + timedelta(hours=1),
        access_token="shpua_456",
        online_access_info={"associated_user": {"id": 42}},
    )
