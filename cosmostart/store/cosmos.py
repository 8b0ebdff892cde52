"""
Azure Cosmos DB Document Store.

Document store backend talking to an Azure Cosmos DB account (or the Cosmos
DB emulator) through the asyncio ``azure-cosmos`` client. SDK exceptions are
translated into the store exceptions so callers never see SDK types.

Author: CosmoStart Contributors
Date: 2026-10-17
"""

import logging
from contextlib import contextmanager
from typing import Any, AsyncIterator, Dict, Iterator, List, Optional

from azure.core import MatchConditions
from azure.cosmos import PartitionKey, ThroughputProperties, exceptions
from azure.cosmos.aio import CosmosClient

from .exceptions import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    PreconditionFailedError,
    RemoteStoreError,
    TooManyRequestsError,
)
from .interface import (
    ContainerRef,
    DatabaseRef,
    DocumentStore,
    ItemResponse,
    QueryPage,
)

logger = logging.getLogger(__name__)

REQUEST_CHARGE_HEADER = "x-ms-request-charge"
RETRY_AFTER_HEADER = "x-ms-retry-after-ms"


def _error_message(error: exceptions.CosmosHttpResponseError) -> str:
    return getattr(error, "message", None) or str(error)


@contextmanager
def translate_errors() -> Iterator[None]:
    """Re-raise Cosmos SDK errors as store exceptions."""
    try:
        yield
    except exceptions.CosmosResourceNotFoundError as e:
        raise NotFoundError(_error_message(e)) from e
    except exceptions.CosmosResourceExistsError as e:
        raise ConflictError(_error_message(e)) from e
    except exceptions.CosmosAccessConditionFailedError as e:
        raise PreconditionFailedError(_error_message(e)) from e
    except exceptions.CosmosHttpResponseError as e:
        status_code = e.status_code or 500
        if status_code == 400:
            raise BadRequestError(_error_message(e)) from e
        if status_code == 429:
            headers = getattr(e, "headers", None) or {}
            retry_after = headers.get(RETRY_AFTER_HEADER)
            raise TooManyRequestsError(
                _error_message(e),
                retry_after_ms=int(float(retry_after)) if retry_after else None
            ) from e
        raise RemoteStoreError(_error_message(e), status_code=status_code) from e


class CosmosDocumentStore(DocumentStore):
    """
    Document store backed by Azure Cosmos DB.

    The SDK client is created by ``initialize()`` and disposed by
    ``close()``; use the store as an async context manager to guarantee
    disposal.

    Args:
        endpoint_uri: Account endpoint, e.g. ``https://myaccount.documents.azure.com:443/``
        primary_key: Account key
        application_name: Appended to the SDK user agent
    """

    def __init__(
        self,
        endpoint_uri: str,
        primary_key: str,
        application_name: Optional[str] = None
    ) -> None:
        self._endpoint_uri = endpoint_uri
        self._primary_key = primary_key
        self._application_name = application_name
        self._client: Optional[CosmosClient] = None

    async def initialize(self) -> None:
        if self._client is not None:
            return

        kwargs: Dict[str, Any] = {}
        if self._application_name:
            kwargs["user_agent_suffix"] = self._application_name

        client = CosmosClient(self._endpoint_uri, credential=self._primary_key, **kwargs)
        with translate_errors():
            await client.__aenter__()
        self._client = client
        logger.info(f"Connected Cosmos DB client to {self._endpoint_uri}")

    async def close(self) -> None:
        if self._client is None:
            return

        client, self._client = self._client, None
        await client.close()
        logger.info("Cosmos DB client disposed")

    @property
    def client(self) -> CosmosClient:
        if self._client is None:
            raise RuntimeError("Cosmos DB store is not initialized. Call initialize() first.")
        return self._client

    def _container(self, database_id: str, container_id: str):
        return self.client.get_database_client(database_id).get_container_client(container_id)

    def _last_request_charge(self) -> float:
        headers = self.client.client_connection.last_response_headers or {}
        try:
            return float(headers.get(REQUEST_CHARGE_HEADER, 0))
        except (TypeError, ValueError):
            return 0.0

    # ========== Database Operations ==========

    async def create_database_if_not_exists(self, database_id: str) -> DatabaseRef:
        database = self.client.get_database_client(database_id)
        with translate_errors():
            try:
                await database.read()
                return DatabaseRef(id=database_id, created=False)
            except exceptions.CosmosResourceNotFoundError:
                pass

            try:
                await self.client.create_database(id=database_id)
                return DatabaseRef(id=database_id, created=True)
            except exceptions.CosmosResourceExistsError:
                return DatabaseRef(id=database_id, created=False)

    async def delete_database(self, database_id: str) -> None:
        with translate_errors():
            await self.client.delete_database(database_id)

    async def list_databases(self) -> List[str]:
        with translate_errors():
            return [database["id"] async for database in self.client.list_databases()]

    # ========== Container Operations ==========

    async def create_container_if_not_exists(
        self,
        database_id: str,
        container_id: str,
        partition_key_path: str,
        throughput: Optional[int] = None,
        autoscale_max_throughput: Optional[int] = None
    ) -> ContainerRef:
        database = self.client.get_database_client(database_id)
        container = database.get_container_client(container_id)

        offer: Any = None
        if autoscale_max_throughput is not None:
            offer = ThroughputProperties(auto_scale_max_throughput=autoscale_max_throughput)
        elif throughput is not None:
            offer = throughput

        with translate_errors():
            try:
                properties = await container.read()
                return ContainerRef(
                    database_id=database_id,
                    id=container_id,
                    partition_key_path=properties["partitionKey"]["paths"][0],
                    created=False
                )
            except exceptions.CosmosResourceNotFoundError:
                pass

            kwargs: Dict[str, Any] = {}
            if offer is not None:
                kwargs["offer_throughput"] = offer
            try:
                await database.create_container(
                    id=container_id,
                    partition_key=PartitionKey(path=partition_key_path),
                    **kwargs
                )
                created = True
            except exceptions.CosmosResourceExistsError:
                created = False

        return ContainerRef(
            database_id=database_id,
            id=container_id,
            partition_key_path=partition_key_path,
            created=created
        )

    async def read_throughput(self, database_id: str, container_id: str) -> Optional[int]:
        container = self._container(database_id, container_id)
        with translate_errors():
            try:
                offer = await container.get_throughput()
            except exceptions.CosmosResourceNotFoundError:
                # Shared (database-level) throughput or serverless account
                return None

        if offer is None or getattr(offer, "auto_scale_max_throughput", None):
            return None
        return offer.offer_throughput

    async def replace_throughput(
        self,
        database_id: str,
        container_id: str,
        throughput: int
    ) -> int:
        container = self._container(database_id, container_id)
        with translate_errors():
            await container.replace_throughput(throughput)
        return throughput

    # ========== Document Operations ==========

    async def read_item(
        self,
        database_id: str,
        container_id: str,
        item_id: str,
        partition_key: Any
    ) -> ItemResponse:
        container = self._container(database_id, container_id)
        with translate_errors():
            resource = await container.read_item(item=item_id, partition_key=partition_key)
        document = dict(resource)
        return ItemResponse(
            resource=document,
            request_charge=self._last_request_charge(),
            etag=document.get("_etag")
        )

    async def create_item(
        self,
        database_id: str,
        container_id: str,
        body: Dict[str, Any]
    ) -> ItemResponse:
        container = self._container(database_id, container_id)
        with translate_errors():
            resource = await container.create_item(body=body, enable_automatic_id_generation="id" not in body)
        document = dict(resource)
        return ItemResponse(
            resource=document,
            request_charge=self._last_request_charge(),
            etag=document.get("_etag")
        )

    async def replace_item(
        self,
        database_id: str,
        container_id: str,
        item_id: str,
        body: Dict[str, Any],
        if_match: Optional[str] = None
    ) -> ItemResponse:
        container = self._container(database_id, container_id)
        kwargs: Dict[str, Any] = {}
        if if_match:
            kwargs["etag"] = if_match
            kwargs["match_condition"] = MatchConditions.IfNotModified

        with translate_errors():
            resource = await container.replace_item(item=item_id, body=body, **kwargs)
        document = dict(resource)
        return ItemResponse(
            resource=document,
            request_charge=self._last_request_charge(),
            etag=document.get("_etag")
        )

    async def delete_item(
        self,
        database_id: str,
        container_id: str,
        item_id: str,
        partition_key: Any
    ) -> float:
        container = self._container(database_id, container_id)
        with translate_errors():
            await container.delete_item(item=item_id, partition_key=partition_key)
        return self._last_request_charge()

    async def query_items(
        self,
        database_id: str,
        container_id: str,
        query: str,
        parameters: Optional[List[Dict[str, Any]]] = None,
        partition_key: Optional[Any] = None,
        max_item_count: Optional[int] = None
    ) -> AsyncIterator[QueryPage]:
        container = self._container(database_id, container_id)

        kwargs: Dict[str, Any] = {}
        if parameters:
            kwargs["parameters"] = parameters
        if partition_key is not None:
            kwargs["partition_key"] = partition_key
        if max_item_count is not None:
            kwargs["max_item_count"] = max_item_count

        pages = container.query_items(query=query, **kwargs).by_page()
        while True:
            with translate_errors():
                try:
                    page = await pages.__anext__()
                except StopAsyncIteration:
                    return
                items = [dict(item) async for item in page]

            yield QueryPage(
                items=items,
                request_charge=self._last_request_charge(),
                continuation=pages.continuation_token
            )
