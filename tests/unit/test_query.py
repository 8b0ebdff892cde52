"""
Unit tests for QueryExecutor.
"""

import pytest

from cosmostart.accessor import RecordAccessor
from cosmostart.core.metrics import StoreMetrics
from cosmostart.models import Family
from cosmostart.query import QueryExecutor
from cosmostart.samples import andersen_family, wakefield_family
from cosmostart.store import BadRequestError, InMemoryDocumentStore


@pytest.fixture
async def store():
    async with InMemoryDocumentStore() as store_instance:
        yield store_instance


@pytest.fixture
def metrics():
    return StoreMetrics()


@pytest.fixture
async def container(store):
    """'db/items' holding both sample families and a second Andersen."""
    await store.create_database_if_not_exists("db")
    container_ref = await store.create_container_if_not_exists("db", "items", "/LastName", throughput=400)

    families = RecordAccessor(store, container_ref, Family)
    second_andersen = andersen_family()
    second_andersen.id = "Andersen.2"
    for family in (andersen_family(), wakefield_family(), second_andersen):
        await families.create(family)
    return container_ref


@pytest.fixture
def executor(store, container, metrics):
    return QueryExecutor(store, container, Family, metrics)


class TestQuery:
    """Tests for filter queries."""

    @pytest.mark.asyncio
    async def test_filter_by_last_name(self, executor):
        """Test that only the Andersen records are returned."""
        result = await executor.query("SELECT * FROM c WHERE c.LastName = 'Andersen'")

        assert [f.id for f in result.records] == ["Andersen.1", "Andersen.2"]
        assert all(isinstance(f, Family) for f in result.records)
        assert result.page_count == 1
        assert result.request_charge == 2.7

    @pytest.mark.asyncio
    async def test_no_match(self, executor):
        """Test a query matching nothing."""
        result = await executor.query("SELECT * FROM c WHERE c.LastName = 'Nobody'")

        assert result.records == []
        assert result.page_count == 1

    @pytest.mark.asyncio
    async def test_drains_all_pages(self, executor):
        """Test that every page is materialized."""
        result = await executor.query("SELECT * FROM c", max_item_count=1)

        assert len(result.records) == 3
        assert result.page_count == 3
        assert result.request_charge == 7.8

    @pytest.mark.asyncio
    async def test_parameters(self, executor):
        """Test parameterized filters."""
        result = await executor.query(
            "SELECT * FROM c WHERE c.IsRegistered = @registered",
            parameters={"@registered": True}
        )

        assert [f.id for f in result.records] == ["Wakefield.7"]

    @pytest.mark.asyncio
    async def test_each_call_reissues_the_query(self, executor, store, container):
        """Test that a second call sees writes made after the first."""
        first = await executor.query("SELECT * FROM c WHERE c.LastName = 'Wakefield'")
        await store.delete_item(container.database_id, container.id, "Wakefield.7", "Wakefield")
        second = await executor.query("SELECT * FROM c WHERE c.LastName = 'Wakefield'")

        assert len(first.records) == 1
        assert second.records == []

    @pytest.mark.asyncio
    async def test_malformed_query(self, executor, metrics):
        """Test malformed queries are rejected and recorded as errors."""
        with pytest.raises(BadRequestError):
            await executor.query("SELECT * FROM c WHERE")

        assert metrics.operation_count("query_items", "error") == 1


class TestByPartitionKey:
    """Tests for partition key queries."""

    @pytest.mark.asyncio
    async def test_by_partition_key(self, executor):
        """Test the single-partition equality query."""
        result = await executor.by_partition_key("Andersen")

        assert [f.id for f in result.records] == ["Andersen.1", "Andersen.2"]

    @pytest.mark.asyncio
    async def test_by_partition_key_empty(self, executor):
        """Test a partition with no records."""
        result = await executor.by_partition_key("Miller")

        assert result.records == []
