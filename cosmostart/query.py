"""
Query Executor

Runs SQL queries against a container and materializes every result page.

Author: CosmoStart Contributors
Date: 2026-10-17
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Type

from .accessor import RecordT
from .core.logging_config import log_with_context
from .core.metrics import StoreMetrics
from .store.interface import ContainerRef, DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class QueryResult(Generic[RecordT]):
    """
    All records returned by a query.

    Attributes:
        records: Records in result order
        request_charge: Request units consumed across all pages
        page_count: Number of pages fetched
    """

    records: List[RecordT] = field(default_factory=list)
    request_charge: float = 0.0
    page_count: int = 0


class QueryExecutor(Generic[RecordT]):
    """
    Executes filter queries on one container.

    Each call issues a fresh query and drains it; result iterators are never
    reused.
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

    async def query(
        self,
        filter_expression: str,
        parameters: Optional[Dict[str, Any]] = None,
        partition_key: Optional[Any] = None,
        max_item_count: Optional[int] = None
    ) -> QueryResult[RecordT]:
        """
        Run a query and collect every page.

        Args:
            filter_expression: SQL query, e.g. "SELECT * FROM c WHERE c.LastName = 'Andersen'"
            parameters: Values for ``@name`` placeholders, keyed by name
            partition_key: Scope the query to one partition; None fans out
            max_item_count: Page size hint

        Returns:
            Records in result order with the total request charge

        Raises:
            BadRequestError: If the query is malformed
        """
        query_parameters = [
            {"name": name, "value": value} for name, value in (parameters or {}).items()
        ]
        result: QueryResult[RecordT] = QueryResult()

        with self.metrics.timed("query_items") as timer:
            pages = self.store.query_items(
                self.container.database_id,
                self.container.id,
                filter_expression,
                parameters=query_parameters or None,
                partition_key=partition_key,
                max_item_count=max_item_count
            )
            async for page in pages:
                result.page_count += 1
                result.request_charge = round(result.request_charge + page.request_charge, 2)
                result.records.extend(self.model.from_document(item) for item in page.items)
            timer.request_charge = result.request_charge

        log_with_context(
            logger,
            logging.INFO,
            f"Query returned {len(result.records)} records",
            query=filter_expression,
            pages=result.page_count,
            request_charge=result.request_charge,
        )
        return result

    async def by_partition_key(self, value: Any, max_item_count: Optional[int] = None) -> QueryResult[RecordT]:
        """All records whose partition key equals ``value``, from that partition only."""
        field_name = self.container.partition_key_field
        return await self.query(
            f"SELECT * FROM c WHERE c.{field_name} = @value",
            parameters={"@value": value},
            partition_key=value,
            max_item_count=max_item_count
        )
