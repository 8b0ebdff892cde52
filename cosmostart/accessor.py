"""
Record Accessor

Point operations on the documents of one container, typed by a pydantic
document model.

Author: CosmoStart Contributors
Date: 2026-10-17
"""

import logging
from dataclasses import dataclass
from typing import Any, Generic, Optional, Type, TypeVar, Union

from .core.metrics import StoreMetrics
from .models import Document
from .store.exceptions import NotFoundError
from .store.interface import ContainerRef, DocumentStore

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=Document)


@dataclass(frozen=True)
class Found(Generic[RecordT]):
    """A keyed read that located the record."""

    record: RecordT
    request_charge: float


@dataclass(frozen=True)
class NotFound:
    """A keyed read that located nothing."""

    id: str
    partition_key: Any


ReadResult = Union[Found[RecordT], NotFound]


@dataclass(frozen=True)
class WriteResult(Generic[RecordT]):
    """Record as stored after a create or replace."""

    record: RecordT
    request_charge: float


@dataclass(frozen=True)
class InsertOutcome(Generic[RecordT]):
    """
    Outcome of an insert-if-absent.

    Attributes:
        record: The stored record (the existing one when ``created`` is False)
        created: True if this call created the record
        request_charge: Request units consumed by the read or the create
    """

    record: RecordT
    created: bool
    request_charge: float


class RecordAccessor(Generic[RecordT]):
    """
    Read, create, replace and delete records in a container.

    The partition key value of a record is taken from the field named by the
    container's partition key path.

    Example:
        ```python
        families = RecordAccessor(store, container, Family)
        result = await families.try_read("Andersen.1", "Andersen")
        if isinstance(result, Found):
            print(result.record)
        ```
    """

    def __init__(
        self,
        store: DocumentStore,
        container: ContainerRef,
        model: Type[RecordT],
        metrics: Optional[StoreMetrics] = None
    ):
        self.store = store
        self.container = container
        self.model = model
        self.metrics = metrics or StoreMetrics()

    def partition_key_of(self, record: RecordT) -> Any:
        """Partition key value of a record."""
        return record.to_document().get(self.container.partition_key_field)

    async def try_read(self, id: str, key: Any) -> ReadResult:
        """
        Read a record by id and partition key.

        Returns:
            ``Found`` with the record, or ``NotFound`` when there is no such
            record. Any other store failure propagates.
        """
        with self.metrics.timed("read_item") as timer:
            try:
                response = await self.store.read_item(
                    self.container.database_id, self.container.id, id, key
                )
            except NotFoundError:
                timer.status = "not_found"
                logger.debug(f"Record '{id}' not found in partition '{key}'")
                return NotFound(id=id, partition_key=key)
            timer.request_charge = response.request_charge

        return Found(record=self.model.from_document(response.resource), request_charge=response.request_charge)

    async def create(self, record: RecordT) -> WriteResult[RecordT]:
        """
        Create a record.

        Raises:
            ConflictError: If a record with the same id and partition key exists
        """
        with self.metrics.timed("create_item") as timer:
            response = await self.store.create_item(
                self.container.database_id, self.container.id, record.to_document()
            )
            timer.request_charge = response.request_charge

        logger.info(f"Created record '{response.resource.get('id')}' ({response.request_charge} RUs)")
        return WriteResult(record=self.model.from_document(response.resource), request_charge=response.request_charge)

    async def replace(self, record: RecordT, if_match: Optional[str] = None) -> WriteResult[RecordT]:
        """
        Overwrite the stored record with ``record`` in full.

        Args:
            record: New content; its id and partition key select the target
            if_match: ETag read earlier; the replace fails if the record has
                changed since

        Raises:
            NotFoundError: If the record does not exist
            PreconditionFailedError: If ``if_match`` is stale
        """
        body = record.to_document()
        with self.metrics.timed("replace_item") as timer:
            response = await self.store.replace_item(
                self.container.database_id,
                self.container.id,
                body["id"],
                body,
                if_match=if_match
            )
            timer.request_charge = response.request_charge

        logger.info(f"Replaced record '{body['id']}' ({response.request_charge} RUs)")
        return WriteResult(record=self.model.from_document(response.resource), request_charge=response.request_charge)

    async def delete(self, id: str, key: Any) -> float:
        """
        Delete a record.

        Returns:
            Request units consumed

        Raises:
            NotFoundError: If the record does not exist
        """
        with self.metrics.timed("delete_item") as timer:
            charge = await self.store.delete_item(self.container.database_id, self.container.id, id, key)
            timer.request_charge = charge

        logger.info(f"Deleted record '{id}' from partition '{key}' ({charge} RUs)")
        return charge

    async def insert_if_absent(self, record: RecordT) -> InsertOutcome[RecordT]:
        """
        Create the record unless one with the same id and partition key exists.

        Not atomic: a record created by someone else between the read and
        the create surfaces as ``ConflictError``.
        """
        body = record.to_document()
        existing = await self.try_read(body["id"], self.partition_key_of(record))

        if isinstance(existing, Found):
            return InsertOutcome(record=existing.record, created=False, request_charge=existing.request_charge)

        written = await self.create(record)
        return InsertOutcome(record=written.record, created=True, request_charge=written.request_charge)
