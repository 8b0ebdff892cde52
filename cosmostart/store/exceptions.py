"""
Document Store Exceptions.

Error types raised by every document store backend. Status codes and
error codes follow the Azure Cosmos DB REST API so callers can treat the
in-memory store and the real service the same way.

Author: CosmoStart Contributors
Date: 2026-10-17
"""

from typing import Optional


class RemoteStoreError(Exception):
    """Base exception for document store errors.

    Attributes:
        message: Error message
        status_code: HTTP status code reported by the store
        error_code: Cosmos DB error code
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "InternalServerError"
    ):
        """Initialize document store error.

        Args:
            message: Error message
            status_code: HTTP status code
            error_code: Cosmos DB error code
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code


class NotFoundError(RemoteStoreError):
    """Database, container or document not found."""

    def __init__(
        self,
        message: str,
        resource_id: str = "",
        partition_key: Optional[str] = None
    ):
        """Initialize not found error.

        Args:
            message: Error message
            resource_id: Identifier of the missing resource
            partition_key: Partition key value, for documents
        """
        super().__init__(message, 404, "NotFound")
        self.resource_id = resource_id
        self.partition_key = partition_key


class ConflictError(RemoteStoreError):
    """Resource with the same id already exists."""

    def __init__(
        self,
        message: str,
        resource_id: str = "",
        partition_key: Optional[str] = None
    ):
        super().__init__(message, 409, "Conflict")
        self.resource_id = resource_id
        self.partition_key = partition_key


class PreconditionFailedError(RemoteStoreError):
    """Precondition failed error (ETag mismatch)."""

    def __init__(self, message: str, etag: str = ""):
        """Initialize precondition failed error.

        Args:
            message: Error message
            etag: Expected ETag value
        """
        super().__init__(message, 412, "PreconditionFailed")
        self.etag = etag


class BadRequestError(RemoteStoreError):
    """Bad request error."""

    def __init__(self, message: str):
        super().__init__(message, 400, "BadRequest")


class TooManyRequestsError(RemoteStoreError):
    """Request rate is large (throttled by the store)."""

    def __init__(self, message: str, retry_after_ms: Optional[int] = None):
        super().__init__(message, 429, "TooManyRequests")
        self.retry_after_ms = retry_after_ms
