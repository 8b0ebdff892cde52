"""
Document store backends.

Author: CosmoStart Contributors
Date: 2026-10-17
"""

from .interface import (
    ContainerRef,
    DatabaseRef,
    DocumentStore,
    ItemResponse,
    QueryPage,
)
from .memory import InMemoryDocumentStore
from .factory import create_store
from .exceptions import (
    RemoteStoreError,
    NotFoundError,
    ConflictError,
    PreconditionFailedError,
    BadRequestError,
    TooManyRequestsError,
)

__all__ = [
    # Contract
    "DocumentStore",
    "DatabaseRef",
    "ContainerRef",
    "ItemResponse",
    "QueryPage",
    # Backends
    "InMemoryDocumentStore",
    "create_store",
    # Exceptions
    "RemoteStoreError",
    "NotFoundError",
    "ConflictError",
    "PreconditionFailedError",
    "BadRequestError",
    "TooManyRequestsError",
]
