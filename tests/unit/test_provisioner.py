"""
Unit tests for ContainerProvisioner.
"""

import pytest

from cosmostart.core.metrics import StoreMetrics
from cosmostart.provisioner import ContainerProvisioner, ThroughputChange
from cosmostart.store import BadRequestError, InMemoryDocumentStore, NotFoundError, RemoteStoreError


@pytest.fixture
async def store():
    async with InMemoryDocumentStore() as store_instance:
        yield store_instance


@pytest.fixture
def metrics():
    return StoreMetrics()


@pytest.fixture
def provisioner(store, metrics):
    return ContainerProvisioner(store, metrics)


class TestEnsure:
    """Tests for idempotent provisioning."""

    @pytest.mark.asyncio
    async def test_ensure_database_twice(self, provisioner, store):
        """Test that ensuring twice yields one database."""
        first = await provisioner.ensure_database("db")
        second = await provisioner.ensure_database("db")

        assert first.created is True
        assert second.created is False
        assert first.id == second.id == "db"
        assert await store.list_databases() == ["db"]

    @pytest.mark.asyncio
    async def test_ensure_container_twice(self, provisioner):
        """Test that ensuring twice yields one container with the first settings."""
        database = await provisioner.ensure_database("db")

        first = await provisioner.ensure_container(database, "items", "/LastName", 400)
        second = await provisioner.ensure_container(database, "items", "/LastName", 1000)

        assert first.created is True
        assert second.created is False
        assert await provisioner.read_throughput(second) == 400

    @pytest.mark.asyncio
    async def test_ensure_container_missing_database(self, provisioner, store):
        """Test provisioning into a database that was deleted."""
        database = await provisioner.ensure_database("db")
        await store.delete_database("db")

        with pytest.raises(NotFoundError):
            await provisioner.ensure_container(database, "items", "/LastName", 400)

    @pytest.mark.asyncio
    async def test_database_exists(self, provisioner):
        """Test database existence checks."""
        assert await provisioner.database_exists("db") is False

        database = await provisioner.ensure_database("db")
        assert await provisioner.database_exists("db") is True

        await provisioner.delete_database(database)
        assert await provisioner.database_exists("db") is False

    @pytest.mark.asyncio
    async def test_operations_recorded(self, provisioner, metrics):
        """Test that provisioning calls are recorded in metrics."""
        database = await provisioner.ensure_database("db")
        await provisioner.ensure_container(database, "items", "/LastName", 400)

        assert metrics.operation_count("create_database") == 1
        assert metrics.operation_count("create_container") == 1


class TestThroughput:
    """Tests for throughput adjustment."""

    @pytest.fixture
    async def container(self, provisioner):
        database = await provisioner.ensure_database("db")
        return await provisioner.ensure_container(database, "items", "/LastName", 400)

    @pytest.mark.asyncio
    async def test_scale_throughput(self, provisioner, container):
        """Test scaling manual throughput by an increment."""
        change = await provisioner.scale_throughput(container, 100)

        assert change == ThroughputChange(previous=400, current=500)
        assert await provisioner.read_throughput(container) == 500

    @pytest.mark.asyncio
    async def test_set_throughput(self, provisioner, container):
        """Test setting throughput directly."""
        assert await provisioner.set_throughput(container, 800) == 800
        assert await provisioner.read_throughput(container) == 800

    @pytest.mark.asyncio
    async def test_set_invalid_throughput(self, provisioner, container):
        """Test that invalid values are rejected and nothing changes."""
        with pytest.raises(BadRequestError):
            await provisioner.set_throughput(container, 350)

        assert await provisioner.read_throughput(container) == 400

    @pytest.mark.asyncio
    async def test_scale_without_manual_throughput(self, provisioner):
        """Test that scaling is skipped when there is no manual throughput."""
        database = await provisioner.ensure_database("db")
        container = await provisioner.ensure_container(database, "shared", "/LastName")

        assert await provisioner.scale_throughput(container, 100) is None

    @pytest.mark.asyncio
    async def test_set_without_manual_throughput(self, provisioner, metrics):
        """Test that setting throughput on a container without it fails."""
        database = await provisioner.ensure_database("db")
        container = await provisioner.ensure_container(database, "shared", "/LastName")

        with pytest.raises(RemoteStoreError):
            await provisioner.set_throughput(container, 500)

        assert metrics.operation_count("replace_throughput", "error") == 1
