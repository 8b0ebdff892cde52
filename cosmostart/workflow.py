"""
Getting-Started Workflow

The walkthrough itself: provision a database and container, scale the
container, insert the sample families, query, replace and delete a record,
and finally tear the database down. Each stage is a coroutine that prints a
progress line; ``run()`` executes them in order and stops at the first
failure.

Author: CosmoStart Contributors
Date: 2026-10-17
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import click

from .accessor import Found, RecordAccessor
from .core.config_manager import CosmoStartConfig, WorkflowConfig
from .core.logging_config import clear_run_id, set_run_id
from .core.metrics import StoreMetrics
from .models import Family
from .provisioner import ContainerProvisioner, ThroughputChange
from .query import QueryExecutor
from .samples import sample_families, wakefield_family
from .store.exceptions import NotFoundError
from .store.factory import create_store
from .store.interface import ContainerRef, DatabaseRef, DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class WorkflowReport:
    """Summary of a walkthrough run."""

    database_id: str
    container_id: str
    throughput_change: Optional[ThroughputChange] = None
    inserted_ids: List[str] = field(default_factory=list)
    skipped_ids: List[str] = field(default_factory=list)
    queried: List[Family] = field(default_factory=list)
    replaced: Optional[Family] = None
    deleted_id: Optional[str] = None
    database_deleted: bool = False
    request_charge: float = 0.0


class GettingStartedWorkflow:
    """
    Runs the getting-started stages against a document store.

    Args:
        store: Initialized document store
        settings: Resource names and sample values
        echo: Sink for progress lines
        metrics: Metrics collector shared by all stages
        pause: Called with no arguments before the database is torn down
    """

    def __init__(
        self,
        store: DocumentStore,
        settings: WorkflowConfig,
        echo: Callable[[str], None] = click.echo,
        metrics: Optional[StoreMetrics] = None,
        pause: Optional[Callable[[], None]] = None
    ):
        self.store = store
        self.settings = settings
        self.echo = echo
        self.metrics = metrics or StoreMetrics()
        self.pause = pause
        self.provisioner = ContainerProvisioner(store, self.metrics)

        self.database: Optional[DatabaseRef] = None
        self.container: Optional[ContainerRef] = None
        self.report = WorkflowReport(database_id=settings.database_id, container_id=settings.container_id)

    @property
    def families(self) -> RecordAccessor[Family]:
        return RecordAccessor(self.store, self._require_container(), Family, self.metrics)

    def _require_database(self) -> DatabaseRef:
        if self.database is None:
            raise RuntimeError("Database not provisioned. Run create_database() first.")
        return self.database

    def _require_container(self) -> ContainerRef:
        if self.container is None:
            raise RuntimeError("Container not provisioned. Run create_container() first.")
        return self.container

    async def create_database(self) -> DatabaseRef:
        self.database = await self.provisioner.ensure_database(self.settings.database_id)
        self.echo(f"Created Database: {self.database.id}\n")
        return self.database

    async def create_container(self) -> ContainerRef:
        self.container = await self.provisioner.ensure_container(
            self._require_database(),
            self.settings.container_id,
            self.settings.partition_key_path,
            initial_throughput=self.settings.initial_throughput
        )
        self.echo(f"Created Container: {self.container.id}\n")
        return self.container

    async def scale_container(self) -> Optional[ThroughputChange]:
        """Raise manual throughput by the configured increment; skip when there is none."""
        container = self._require_container()
        change = await self.provisioner.scale_throughput(container, self.settings.throughput_increment)
        if change is None:
            self.echo(f"Container {container.id} has no manual throughput; skipping scale\n")
            return None

        self.echo(f"Current provisioned throughput : {change.previous}\n")
        self.echo(f"New provisioned throughput : {change.current}\n")

        self.report.throughput_change = change
        return change

    async def add_items_to_container(self) -> None:
        """Insert each sample family unless it is already stored."""
        families = self.families
        for family in sample_families():
            outcome = await families.insert_if_absent(family)
            if outcome.created:
                self.report.inserted_ids.append(outcome.record.id)
                self.echo(
                    f"Created item in database with id: {outcome.record.id} "
                    f"Operation consumed {outcome.request_charge} RUs.\n"
                )
            else:
                self.report.skipped_ids.append(outcome.record.id)
                self.echo(f"Item in database with id: {outcome.record.id} already exists\n")

    async def query_items(self) -> List[Family]:
        """Query the families with the configured last name, across partitions."""
        container = self._require_container()
        last_name = self.settings.query_last_name.replace("\\", "\\\\").replace("'", "\\'")
        sql_query_text = f"SELECT * FROM c WHERE c.{container.partition_key_field} = '{last_name}'"

        self.echo(f"Running query: [{sql_query_text}]\n")

        executor = QueryExecutor(self.store, container, Family, self.metrics)
        result = await executor.query(sql_query_text, max_item_count=self.settings.max_item_count)
        for family in result.records:
            self.echo(f"\tRead {family}\n")

        self.report.queried = result.records
        return result.records

    async def replace_family_item(self) -> Family:
        """Mark the Wakefield family registered and move its first child to grade 6."""
        families = self.families
        target = wakefield_family()

        existing = await families.try_read(target.id, target.last_name)
        if not isinstance(existing, Found):
            raise NotFoundError(
                f"Family '{target.id}' not found in partition '{target.last_name}'",
                resource_id=target.id,
                partition_key=target.last_name
            )

        item_body = existing.record
        item_body.is_registered = True
        item_body.children[0].grade = 6

        # Unconditional replace; concurrent writers are last-writer-wins
        written = await families.replace(item_body)
        self.echo(
            f"Updated Family [{item_body.last_name},{item_body.id}].\n"
            f" \tBody is now: {written.record}\n"
        )

        self.report.replaced = written.record
        return written.record

    async def delete_family_item(self) -> None:
        target = wakefield_family()
        await self.families.delete(target.id, target.last_name)
        self.echo(f"Deleted Family [{target.last_name},{target.id}]\n")
        self.report.deleted_id = target.id

    async def delete_database_and_cleanup(self) -> None:
        database = self._require_database()
        if not self.settings.delete_database:
            self.echo(f"Keeping Database: {database.id}\n")
            return

        await self.provisioner.delete_database(database)
        self.echo(f"Deleted Database: {database.id}\n")
        self.report.database_deleted = True

    async def run(self) -> WorkflowReport:
        """
        Execute every stage in order.

        A failing stage aborts the run and its exception propagates; the
        database is then left in place.

        Returns:
            Summary of the run
        """
        set_run_id(uuid.uuid4().hex)
        try:
            self.echo("Beginning operations...\n")
            logger.info(f"Starting walkthrough on database '{self.settings.database_id}'")

            await self.create_database()
            await self.create_container()
            await self.scale_container()
            await self.add_items_to_container()
            await self.query_items()
            await self.replace_family_item()
            await self.delete_family_item()

            if self.pause is not None:
                self.pause()
            await self.delete_database_and_cleanup()

            self.report.request_charge = self.metrics.total_request_units()
            logger.info(f"Walkthrough finished, {self.report.request_charge} RUs consumed")
            return self.report
        finally:
            clear_run_id()


async def run_workflow(
    config: CosmoStartConfig,
    store: Optional[DocumentStore] = None,
    echo: Callable[[str], None] = click.echo,
    pause: Optional[Callable[[], None]] = None,
    metrics: Optional[StoreMetrics] = None
) -> WorkflowReport:
    """
    Run the walkthrough with a store built from configuration.

    The store handle is released when the run ends, whether it succeeds or
    fails.

    Args:
        config: Loaded configuration
        store: Store to use instead of the configured one
        echo: Sink for progress lines
        pause: Called before the database is torn down
        metrics: Metrics collector to record into

    Returns:
        Summary of the run
    """
    store = store if store is not None else create_store(config.connection)
    async with store:
        workflow = GettingStartedWorkflow(
            store,
            config.workflow,
            echo=echo,
            metrics=metrics,
            pause=pause
        )
        return await workflow.run()
