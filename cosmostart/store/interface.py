"""
Document Store Interface

Defines the abstract interface all document store backends must implement.

Author: CosmoStart Contributors
Date: 2026-10-17
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional


@dataclass(frozen=True)
class DatabaseRef:
    """
    Reference to a database in the store.

    Attributes:
        id: Database identifier
        created: True if this call created the database
    """

    id: str
    created: bool = False


@dataclass(frozen=True)
class ContainerRef:
    """
    Reference to a container in the store.

    Attributes:
        database_id: Owning database identifier
        id: Container identifier
        partition_key_path: Partition key path (e.g. "/LastName")
        created: True if this call created the container
    """

    database_id: str
    id: str
    partition_key_path: str
    created: bool = False

    @property
    def partition_key_field(self) -> str:
        """Top-level document field holding the partition key value."""
        return self.partition_key_path.lstrip("/")


@dataclass
class ItemResponse:
    """
    Result of a point operation on a document.

    Attributes:
        resource: Stored document, including system properties
        request_charge: Request units consumed by the operation
        etag: Document ETag after the operation
    """

    resource: Dict[str, Any]
    request_charge: float = 0.0
    etag: Optional[str] = None


@dataclass
class QueryPage:
    """
    One page of query results.

    Attributes:
        items: Documents in this page
        request_charge: Request units consumed fetching this page
        continuation: Token for the next page, None on the last page
    """

    items: List[Dict[str, Any]] = field(default_factory=list)
    request_charge: float = 0.0
    continuation: Optional[str] = None


class DocumentStore(ABC):
    """
    Abstract base class for document store backends.

    A store is an async context manager: entering it calls ``initialize()``
    and leaving it calls ``close()``, on success and on failure alike.
    Implementations must make ``close()`` safe to call more than once.

    **Error Handling**:
    - Raise ``NotFoundError`` for missing databases, containers and documents
    - Raise ``ConflictError`` when creating a document that already exists
    - Raise ``PreconditionFailedError`` on ETag mismatch
    - Raise ``BadRequestError`` for invalid requests
    - Any other store failure is a ``RemoteStoreError``
    """

    async def __aenter__(self) -> "DocumentStore":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @abstractmethod
    async def initialize(self) -> None:
        """
        Prepare the store for use (open clients, load snapshots).

        Must be idempotent.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """
        Release the store handle.

        Must be idempotent.
        """
        pass

    # ========== Database Operations ==========

    @abstractmethod
    async def create_database_if_not_exists(self, database_id: str) -> DatabaseRef:
        """
        Return the database, creating it if it does not exist.

        Args:
            database_id: Database identifier

        Returns:
            Reference to the database
        """
        pass

    @abstractmethod
    async def delete_database(self, database_id: str) -> None:
        """
        Delete a database and everything in it.

        Raises:
            NotFoundError: If the database does not exist
        """
        pass

    @abstractmethod
    async def list_databases(self) -> List[str]:
        """Return the identifiers of all databases."""
        pass

    # ========== Container Operations ==========

    @abstractmethod
    async def create_container_if_not_exists(
        self,
        database_id: str,
        container_id: str,
        partition_key_path: str,
        throughput: Optional[int] = None,
        autoscale_max_throughput: Optional[int] = None
    ) -> ContainerRef:
        """
        Return the container, creating it if it does not exist.

        Args:
            database_id: Database identifier
            container_id: Container identifier
            partition_key_path: Partition key path (e.g. "/LastName")
            throughput: Manual throughput in RU/s, None for none
            autoscale_max_throughput: Autoscale ceiling in RU/s, instead of manual throughput

        Returns:
            Reference to the container

        Raises:
            NotFoundError: If the database does not exist
            BadRequestError: If the partition key path or throughput is invalid
        """
        pass

    @abstractmethod
    async def read_throughput(self, database_id: str, container_id: str) -> Optional[int]:
        """
        Read the manual throughput provisioned on a container.

        Returns:
            Throughput in RU/s, or None if the container has no fixed value
        """
        pass

    @abstractmethod
    async def replace_throughput(
        self,
        database_id: str,
        container_id: str,
        throughput: int
    ) -> int:
        """
        Persist a new manual throughput value.

        Returns:
            The new throughput

        Raises:
            BadRequestError: If the container has no manual throughput
        """
        pass

    # ========== Document Operations ==========

    @abstractmethod
    async def read_item(
        self,
        database_id: str,
        container_id: str,
        item_id: str,
        partition_key: Any
    ) -> ItemResponse:
        """
        Read a document by id and partition key.

        Raises:
            NotFoundError: If the document does not exist
        """
        pass

    @abstractmethod
    async def create_item(
        self,
        database_id: str,
        container_id: str,
        body: Dict[str, Any]
    ) -> ItemResponse:
        """
        Create a document. The partition key value is read from the body.

        Raises:
            ConflictError: If a document with the same id and partition key exists
            BadRequestError: If the body lacks an id or partition key value
        """
        pass

    @abstractmethod
    async def replace_item(
        self,
        database_id: str,
        container_id: str,
        item_id: str,
        body: Dict[str, Any],
        if_match: Optional[str] = None
    ) -> ItemResponse:
        """
        Replace an entire document.

        Args:
            if_match: Expected ETag; the replace fails if the stored one differs

        Raises:
            NotFoundError: If the document does not exist
            PreconditionFailedError: If ``if_match`` does not match
        """
        pass

    @abstractmethod
    async def delete_item(
        self,
        database_id: str,
        container_id: str,
        item_id: str,
        partition_key: Any
    ) -> float:
        """
        Delete a document.

        Returns:
            Request units consumed

        Raises:
            NotFoundError: If the document does not exist
        """
        pass

    @abstractmethod
    def query_items(
        self,
        database_id: str,
        container_id: str,
        query: str,
        parameters: Optional[List[Dict[str, Any]]] = None,
        partition_key: Optional[Any] = None,
        max_item_count: Optional[int] = None
    ) -> AsyncIterator[QueryPage]:
        """
        Run a SQL query and yield result pages.

        The iterator is finite and cannot be restarted; issue a new query to
        scan again.

        Args:
            query: SQL query text
            parameters: ``[{"name": "@p", "value": ...}]`` query parameters
            partition_key: Restrict the query to one partition
            max_item_count: Maximum documents per page
        """
        pass
