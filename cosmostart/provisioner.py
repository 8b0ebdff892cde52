"""
Container Provisioner

Idempotent provisioning of databases and containers, and adjustment of the
throughput provisioned on a container.

Author: CosmoStart Contributors
Date: 2026-10-17
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .core.metrics import StoreMetrics
from .store.interface import ContainerRef, DatabaseRef, DocumentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ThroughputChange:
    """Throughput of a container before and after scaling."""

    previous: int
    current: int


class ContainerProvisioner:
    """
    Ensures databases and containers exist and scales their throughput.

    Every ``ensure_*`` call is safe to repeat: an existing resource is
    returned unchanged and nothing is duplicated.
    """

    def __init__(self, store: DocumentStore, metrics: Optional[StoreMetrics] = None):
        self.store = store
        self.metrics = metrics or StoreMetrics()

    async def ensure_database(self, name: str) -> DatabaseRef:
        """
        Return the database, creating it if needed.

        Args:
            name: Database identifier

        Returns:
            Reference to the database; ``created`` tells whether it is new
        """
        with self.metrics.timed("create_database"):
            database = await self.store.create_database_if_not_exists(name)

        logger.info(f"Database '{name}' {'created' if database.created else 'already exists'}")
        return database

    async def ensure_container(
        self,
        database: DatabaseRef,
        name: str,
        partition_key_path: str,
        initial_throughput: Optional[int] = None
    ) -> ContainerRef:
        """
        Return the container, creating it if needed.

        The throughput only applies when the container is created; an
        existing container keeps its current allocation.

        Args:
            database: Owning database
            name: Container identifier
            partition_key_path: Partition key path, e.g. "/LastName"
            initial_throughput: Manual RU/s for a new container

        Returns:
            Reference to the container

        Raises:
            NotFoundError: If the database does not exist
            BadRequestError: If the partition key path or throughput is invalid
        """
        with self.metrics.timed("create_container"):
            container = await self.store.create_container_if_not_exists(
                database.id,
                name,
                partition_key_path,
                throughput=initial_throughput
            )

        logger.info(
            f"Container '{database.id}/{name}' {'created' if container.created else 'already exists'} "
            f"(partition key {container.partition_key_path})"
        )
        return container

    async def read_throughput(self, container: ContainerRef) -> Optional[int]:
        """Provisioned manual RU/s of the container, None when it has none."""
        with self.metrics.timed("read_throughput"):
            return await self.store.read_throughput(container.database_id, container.id)

    async def set_throughput(self, container: ContainerRef, new_value: int) -> int:
        """
        Persist a new manual throughput on the container.

        Raises:
            RemoteStoreError: If the container has no manual throughput or
                the store rejects the value
        """
        with self.metrics.timed("replace_throughput"):
            current = await self.store.replace_throughput(container.database_id, container.id, new_value)

        logger.info(f"Throughput of '{container.database_id}/{container.id}' set to {current} RU/s")
        return current

    async def scale_throughput(self, container: ContainerRef, increment: int) -> Optional[ThroughputChange]:
        """
        Raise the container's manual throughput by ``increment``.

        Returns:
            The change, or None when the container has no manual throughput
            (autoscale, shared database throughput or serverless)
        """
        previous = await self.read_throughput(container)
        if previous is None:
            logger.info(f"Container '{container.id}' has no manual throughput; not scaling")
            return None

        current = await self.set_throughput(container, previous + increment)
        return ThroughputChange(previous=previous, current=current)

    async def delete_database(self, database: DatabaseRef) -> None:
        """
        Delete the database with all its containers and documents.

        Raises:
            NotFoundError: If the database does not exist
        """
        with self.metrics.timed("delete_database"):
            await self.store.delete_database(database.id)

        logger.info(f"Database '{database.id}' deleted")

    async def database_exists(self, name: str) -> bool:
        """Whether a database with this identifier exists."""
        return name in await self.store.list_databases()
