"""
In-Memory Document Store.

Document store backend holding databases, containers and documents in
process memory with async locking. Optionally persists its state to a JSON
snapshot file so consecutive runs see the same data.

Author: CosmoStart Contributors
Date: 2026-10-17
"""

import asyncio
import copy
import hashlib
import json
import logging
import math
import os
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

from pydantic import ValidationError

from .exceptions import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    PreconditionFailedError,
    RemoteStoreError,
)
from .interface import (
    ContainerRef,
    DatabaseRef,
    DocumentStore,
    ItemResponse,
    QueryPage,
)
from .models import Container, Database, PartitionKeyDefinition, validate_throughput
from .sql import QuerySyntaxError, evaluate_query, parse_query

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100

# Synthetic request unit costs
READ_CHARGE_PER_KB = 1.0
WRITE_CHARGE_PER_KB = 5.0
DELETE_CHARGE = 5.0
QUERY_BASE_CHARGE = 2.5
QUERY_CHARGE_PER_ITEM = 0.1


def _partition_slot(value: Any) -> str:
    """Storage key for a partition key value (keeps "1" and 1 apart)."""
    return json.dumps(value, sort_keys=True)


class InMemoryDocumentStore(DocumentStore):
    """In-memory document store.

    Provides database, container and document management with in-memory
    storage. Thread-safe with async locking for concurrent operations.

    Attributes:
        _databases: Dictionary of databases by ID
        _containers: Dictionary of containers by database ID and container ID
        _documents: Documents by database, container, partition and document ID
        _lock: Async lock for thread safety
    """

    def __init__(self, snapshot_path: Optional[str] = None) -> None:
        """Initialize in-memory store.

        Args:
            snapshot_path: JSON file to load on initialize and save on close
        """
        self._databases: Dict[str, Database] = {}
        self._containers: Dict[str, Dict[str, Container]] = {}
        # {database_id: {container_id: {partition_slot: {doc_id: doc}}}}
        self._documents: Dict[str, Dict[str, Dict[str, Dict[str, Dict[str, Any]]]]] = {}
        self._lock = asyncio.Lock()
        self._snapshot_path = Path(snapshot_path) if snapshot_path else None
        self._initialized = False

    # ========== Lifecycle ==========

    async def initialize(self) -> None:
        """Load the snapshot file, if configured and present."""
        if self._initialized:
            return

        if self._snapshot_path and self._snapshot_path.exists():
            async with self._lock:
                self._load_snapshot(self._snapshot_path)
            logger.info(f"Loaded in-memory store snapshot from {self._snapshot_path}")

        self._initialized = True

    async def close(self) -> None:
        """Write the snapshot file, if configured. Safe to call twice."""
        if not self._initialized:
            return

        if self._snapshot_path:
            async with self._lock:
                self._write_snapshot(self._snapshot_path)
            logger.info(f"Saved in-memory store snapshot to {self._snapshot_path}")

        self._initialized = False

    def _load_snapshot(self, path: Path) -> None:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)

            for database_id, entry in data.get("databases", {}).items():
                self._databases[database_id] = Database.model_validate(entry["properties"])
                self._containers[database_id] = {}
                self._documents[database_id] = {}
                for container_id, container_entry in entry.get("containers", {}).items():
                    self._containers[database_id][container_id] = Container.model_validate(
                        container_entry["properties"]
                    )
                    self._documents[database_id][container_id] = container_entry.get("documents", {})
        except (OSError, ValueError, KeyError, ValidationError) as e:
            raise RemoteStoreError(f"Failed to load snapshot {path}: {e}") from e

    def _write_snapshot(self, path: Path) -> None:
        data: Dict[str, Any] = {"databases": {}}
        for database_id, database in self._databases.items():
            containers = {}
            for container_id, container in self._containers.get(database_id, {}).items():
                containers[container_id] = {
                    "properties": container.model_dump(by_alias=True),
                    "documents": self._documents.get(database_id, {}).get(container_id, {}),
                }
            data["databases"][database_id] = {
                "properties": database.model_dump(by_alias=True),
                "containers": containers,
            }

        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(".tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            temp_path.replace(path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise RemoteStoreError(f"Failed to write snapshot {path}: {e}") from e

    # ========== Helpers ==========

    def _generate_resource_id(self, resource_type: str, identifier: str) -> str:
        """Generate a unique resource ID.

        Args:
            resource_type: Type of resource (db, coll, doc)
            identifier: Resource identifier

        Returns:
            Generated resource ID
        """
        hash_input = f"{resource_type}:{identifier}:{time.time()}:{uuid.uuid4().hex}"
        return hashlib.sha256(hash_input.encode()).hexdigest()[:8]

    def _generate_timestamp(self) -> int:
        return int(datetime.now(timezone.utc).timestamp())

    def _generate_etag(self) -> str:
        return f'"{uuid.uuid4().hex[:16]}"'

    def _charge(self, document: Dict[str, Any], per_kb: float) -> float:
        size = len(json.dumps(document, default=str).encode("utf-8"))
        return round(per_kb * max(1, math.ceil(size / 1024)), 2)

    def _get_database_unlocked(self, database_id: str) -> Database:
        if database_id not in self._databases:
            raise NotFoundError(
                f"Database with id '{database_id}' not found",
                resource_id=database_id
            )
        return self._databases[database_id]

    def _get_container_unlocked(self, database_id: str, container_id: str) -> Container:
        """Get container without acquiring lock (internal use).

        Raises:
            NotFoundError: If the database or container does not exist
        """
        self._get_database_unlocked(database_id)

        if container_id not in self._containers[database_id]:
            raise NotFoundError(
                f"Container with id '{container_id}' not found in database '{database_id}'",
                resource_id=container_id
            )

        return self._containers[database_id][container_id]

    def _partition(self, database_id: str, container_id: str, slot: str) -> Dict[str, Dict[str, Any]]:
        return self._documents[database_id][container_id].setdefault(slot, {})

    def _extract_partition_key_value(self, document: Dict[str, Any], container: Container) -> Any:
        """Extract partition key value from document.

        Raises:
            BadRequestError: If partition key not found in document
        """
        key_name = container.partition_key.field_name

        if key_name not in document or document[key_name] is None:
            raise BadRequestError(
                f"Partition key '{key_name}' not found in document"
            )

        return document[key_name]

    def _get_document_unlocked(
        self,
        database_id: str,
        container_id: str,
        document_id: str,
        partition_key: Any
    ) -> Dict[str, Any]:
        partition = self._documents[database_id][container_id].get(_partition_slot(partition_key), {})
        if document_id not in partition:
            raise NotFoundError(
                f"Document with id '{document_id}' and partition key '{partition_key}' not found",
                resource_id=document_id,
                partition_key=str(partition_key)
            )
        return partition[document_id]

    # ========== Database Operations ==========

    async def create_database_if_not_exists(self, database_id: str) -> DatabaseRef:
        async with self._lock:
            if database_id in self._databases:
                return DatabaseRef(id=database_id, created=False)

            rid = self._generate_resource_id("db", database_id)
            try:
                database = Database(
                    id=database_id,
                    _rid=rid,
                    _ts=self._generate_timestamp(),
                    _self=f"dbs/{rid}",
                    _etag=f'"{rid}"',
                )
            except ValidationError as e:
                raise BadRequestError(f"Invalid database id '{database_id}': {e}") from e

            self._databases[database_id] = database
            self._containers[database_id] = {}
            self._documents[database_id] = {}
            logger.debug(f"Created database '{database_id}'")

            return DatabaseRef(id=database_id, created=True)

    async def delete_database(self, database_id: str) -> None:
        """Delete a database with all its containers and documents.

        Raises:
            NotFoundError: If database not found
        """
        async with self._lock:
            self._get_database_unlocked(database_id)

            # Cascade delete
            self._containers.pop(database_id, None)
            self._documents.pop(database_id, None)
            del self._databases[database_id]
            logger.debug(f"Deleted database '{database_id}'")

    async def list_databases(self) -> List[str]:
        async with self._lock:
            return list(self._databases)

    # ========== Container Operations ==========

    async def create_container_if_not_exists(
        self,
        database_id: str,
        container_id: str,
        partition_key_path: str,
        throughput: Optional[int] = None,
        autoscale_max_throughput: Optional[int] = None
    ) -> ContainerRef:
        """Return the container, creating it if it does not exist.

        An existing container is returned as is; its partition key and
        throughput are not changed.

        Raises:
            NotFoundError: If database not found
            BadRequestError: If partition key or throughput is invalid
        """
        async with self._lock:
            db = self._get_database_unlocked(database_id)

            existing = self._containers[database_id].get(container_id)
            if existing is not None:
                return ContainerRef(
                    database_id=database_id,
                    id=container_id,
                    partition_key_path=existing.partition_key.paths[0],
                    created=False
                )

            if throughput is not None and autoscale_max_throughput is not None:
                raise BadRequestError("Specify either manual or autoscale throughput, not both")

            try:
                for value in (throughput, autoscale_max_throughput):
                    if value is not None:
                        validate_throughput(value)
                partition_key = PartitionKeyDefinition(paths=[partition_key_path])
                rid = self._generate_resource_id("coll", container_id)
                container = Container(
                    id=container_id,
                    partitionKey=partition_key,
                    throughput=throughput,
                    autoscaleMaxThroughput=autoscale_max_throughput,
                    _rid=rid,
                    _ts=self._generate_timestamp(),
                    _self=f"{db.self_link}/colls/{rid}",
                    _etag=f'"{rid}"',
                )
            except (ValueError, ValidationError) as e:
                raise BadRequestError(str(e)) from e

            self._containers[database_id][container_id] = container
            self._documents[database_id][container_id] = {}
            logger.debug(
                f"Created container '{container_id}' in '{database_id}' "
                f"(partition key {partition_key_path}, throughput {throughput})"
            )

            return ContainerRef(
                database_id=database_id,
                id=container_id,
                partition_key_path=partition_key_path,
                created=True
            )

    async def read_throughput(self, database_id: str, container_id: str) -> Optional[int]:
        async with self._lock:
            return self._get_container_unlocked(database_id, container_id).throughput

    async def replace_throughput(
        self,
        database_id: str,
        container_id: str,
        throughput: int
    ) -> int:
        async with self._lock:
            container = self._get_container_unlocked(database_id, container_id)

            if container.throughput is None:
                raise BadRequestError(
                    f"Container '{container_id}' does not have dedicated manual throughput"
                )
            try:
                validate_throughput(throughput)
            except ValueError as e:
                raise BadRequestError(str(e)) from e

            container.throughput = throughput
            container.ts = self._generate_timestamp()
            return throughput

    # ========== Document Operations ==========

    async def read_item(
        self,
        database_id: str,
        container_id: str,
        item_id: str,
        partition_key: Any
    ) -> ItemResponse:
        async with self._lock:
            self._get_container_unlocked(database_id, container_id)
            document = copy.deepcopy(
                self._get_document_unlocked(database_id, container_id, item_id, partition_key)
            )
            return ItemResponse(
                resource=document,
                request_charge=self._charge(document, READ_CHARGE_PER_KB),
                etag=document["_etag"]
            )

    async def create_item(
        self,
        database_id: str,
        container_id: str,
        body: Dict[str, Any]
    ) -> ItemResponse:
        """Create a new document in a container.

        Generates an ``id`` when the body has none.

        Raises:
            NotFoundError: If database or container not found
            ConflictError: If document already exists
            BadRequestError: If partition key not provided
        """
        async with self._lock:
            container = self._get_container_unlocked(database_id, container_id)

            document_data = copy.deepcopy(body)
            if not document_data.get("id"):
                document_data["id"] = str(uuid.uuid4())
            doc_id = str(document_data["id"])

            partition_key = self._extract_partition_key_value(document_data, container)
            partition = self._partition(database_id, container_id, _partition_slot(partition_key))

            if doc_id in partition:
                raise ConflictError(
                    f"Document with id '{doc_id}' already exists",
                    resource_id=doc_id,
                    partition_key=str(partition_key)
                )

            rid = self._generate_resource_id("doc", doc_id)
            document = {
                **document_data,
                "_rid": rid,
                "_ts": self._generate_timestamp(),
                "_self": f"{container.self_link}/docs/{rid}",
                "_etag": self._generate_etag(),
                "_attachments": "attachments/",
            }
            partition[doc_id] = document

            result = copy.deepcopy(document)
            return ItemResponse(
                resource=result,
                request_charge=self._charge(result, WRITE_CHARGE_PER_KB),
                etag=result["_etag"]
            )

    async def replace_item(
        self,
        database_id: str,
        container_id: str,
        item_id: str,
        body: Dict[str, Any],
        if_match: Optional[str] = None
    ) -> ItemResponse:
        """Replace an entire document.

        The partition is located from the partition key value in ``body``.

        Raises:
            NotFoundError: If document not found
            PreconditionFailedError: If ETag doesn't match
        """
        async with self._lock:
            container = self._get_container_unlocked(database_id, container_id)

            document_data = copy.deepcopy(body)
            partition_key = self._extract_partition_key_value(document_data, container)
            existing_doc = self._get_document_unlocked(
                database_id, container_id, item_id, partition_key
            )

            if if_match and existing_doc["_etag"] != if_match:
                raise PreconditionFailedError(
                    f"ETag mismatch. Expected '{if_match}', got '{existing_doc['_etag']}'",
                    etag=if_match
                )

            for system_key in ("_rid", "_ts", "_self", "_etag", "_attachments"):
                document_data.pop(system_key, None)
            document_data["id"] = item_id

            # Preserve _rid, update other system properties
            document = {
                **document_data,
                "_rid": existing_doc["_rid"],
                "_ts": self._generate_timestamp(),
                "_self": existing_doc["_self"],
                "_etag": self._generate_etag(),
                "_attachments": existing_doc["_attachments"],
            }
            self._partition(database_id, container_id, _partition_slot(partition_key))[item_id] = document

            result = copy.deepcopy(document)
            return ItemResponse(
                resource=result,
                request_charge=self._charge(result, WRITE_CHARGE_PER_KB),
                etag=result["_etag"]
            )

    async def delete_item(
        self,
        database_id: str,
        container_id: str,
        item_id: str,
        partition_key: Any
    ) -> float:
        async with self._lock:
            self._get_container_unlocked(database_id, container_id)
            self._get_document_unlocked(database_id, container_id, item_id, partition_key)

            slot = _partition_slot(partition_key)
            partition = self._documents[database_id][container_id][slot]
            del partition[item_id]
            if not partition:
                del self._documents[database_id][container_id][slot]

            return DELETE_CHARGE

    async def query_items(
        self,
        database_id: str,
        container_id: str,
        query: str,
        parameters: Optional[List[Dict[str, Any]]] = None,
        partition_key: Optional[Any] = None,
        max_item_count: Optional[int] = None
    ) -> AsyncIterator[QueryPage]:
        """Execute SQL query on documents and yield pages.

        Results are computed when the first page is requested; later writes
        are not seen by pages of the same query.

        Raises:
            NotFoundError: If database or container not found
            BadRequestError: If the query is invalid
        """
        try:
            parsed = parse_query(query)
        except QuerySyntaxError as e:
            raise BadRequestError(f"Syntax error in query: {e}") from e

        bound = {p["name"]: p.get("value") for p in (parameters or [])}
        page_size = max_item_count if max_item_count and max_item_count > 0 else DEFAULT_PAGE_SIZE

        async with self._lock:
            self._get_container_unlocked(database_id, container_id)
            partitions = self._documents[database_id][container_id]

            if partition_key is not None:
                candidates = list(partitions.get(_partition_slot(partition_key), {}).values())
            else:
                candidates = [doc for docs in partitions.values() for doc in docs.values()]

            try:
                results = copy.deepcopy(evaluate_query(parsed, candidates, bound))
            except QuerySyntaxError as e:
                raise BadRequestError(f"Query could not be evaluated: {e}") from e

        logger.debug(f"Query matched {len(results)} documents: {query}")

        start_index = 0
        while True:
            end_index = start_index + page_size
            page_docs = results[start_index:end_index]
            continuation = str(end_index) if end_index < len(results) else None

            yield QueryPage(
                items=page_docs,
                request_charge=round(QUERY_BASE_CHARGE + QUERY_CHARGE_PER_ITEM * len(page_docs), 2),
                continuation=continuation
            )

            if continuation is None:
                return
            start_index = end_index
