"""
Document Store Factory

Creates the document store backend selected by configuration.

Author: CosmoStart Contributors
Date: 2026-10-17
"""

from ..core.config_manager import ConnectionConfig, StoreBackendType
from .interface import DocumentStore
from .memory import InMemoryDocumentStore


def create_store(config: ConnectionConfig) -> DocumentStore:
    """
    Factory function to create a document store based on configuration.

    Args:
        config: Connection configuration

    Returns:
        Uninitialized document store; enter it with ``async with``

    Raises:
        ValueError: If the backend type is unknown

    Example:
        ```python
        store = create_store(ConnectionConfig(backend="memory"))
        async with store:
            await store.create_database_if_not_exists("db")
        ```
    """
    backend = StoreBackendType(config.backend)

    if backend == StoreBackendType.MEMORY:
        return InMemoryDocumentStore(snapshot_path=config.snapshot_path)

    elif backend == StoreBackendType.COSMOS:
        # Imported here so the memory backend works without the SDK's transport
        from .cosmos import CosmosDocumentStore

        return CosmosDocumentStore(
            endpoint_uri=config.endpoint_uri,
            primary_key=config.primary_key,
            application_name=config.application_name,
        )

    raise ValueError(
        f"Unknown store backend: {config.backend}. "
        f"Supported backends: {[t.value for t in StoreBackendType]}"
    )
