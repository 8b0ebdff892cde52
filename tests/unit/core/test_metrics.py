"""
Tests for store operation metrics.
"""

import pytest
from prometheus_client import CollectorRegistry

from cosmostart.core.metrics import StoreMetrics


class TestStoreMetrics:
    """Test cases for Prometheus metrics collection."""

    @pytest.fixture
    def metrics(self):
        """Create metrics instance with a private registry."""
        return StoreMetrics()

    def test_track_operation(self, metrics):
        """Test tracking a completed operation."""
        metrics.track_operation("create_item", "ok", 5.0, 0.01)

        assert metrics.operation_count("create_item") == 1
        assert metrics.total_request_units() == 5.0

    def test_total_request_units_sums_operations(self, metrics):
        """Test that request units are summed across operations."""
        metrics.track_operation("create_item", "ok", 5.0, 0.01)
        metrics.track_operation("read_item", "ok", 1.0, 0.01)
        metrics.track_operation("query_items", "ok", 2.6, 0.01)

        assert metrics.total_request_units() == 8.6

    def test_timed_records_charge(self, metrics):
        """Test the timed() context manager."""
        with metrics.timed("read_item") as timer:
            timer.request_charge = 1.0

        assert metrics.operation_count("read_item") == 1
        assert metrics.total_request_units() == 1.0

    def test_timed_custom_status(self, metrics):
        """Test that the block can set the outcome label."""
        with metrics.timed("read_item") as timer:
            timer.status = "not_found"

        assert metrics.operation_count("read_item", "not_found") == 1
        assert metrics.operation_count("read_item", "ok") == 0

    def test_timed_records_errors(self, metrics):
        """Test that exceptions are recorded and re-raised."""
        with pytest.raises(ValueError):
            with metrics.timed("delete_item"):
                raise ValueError("boom")

        assert metrics.operation_count("delete_item", "error") == 1

    def test_separate_instances_do_not_collide(self):
        """Test that two collectors can coexist in one process."""
        first = StoreMetrics()
        second = StoreMetrics()

        first.track_operation("create_item", "ok", 5.0, 0.01)

        assert first.total_request_units() == 5.0
        assert second.total_request_units() == 0.0

    def test_shared_registry(self):
        """Test registering into a caller-provided registry."""
        registry = CollectorRegistry()
        metrics = StoreMetrics(registry=registry)

        metrics.track_operation("create_item", "ok", 5.0, 0.01)

        assert registry.get_sample_value(
            "cosmostart_request_units_total", {"operation": "create_item"}
        ) == 5.0

    def test_export(self, metrics):
        """Test Prometheus text exposition output."""
        metrics.track_operation("create_item", "ok", 5.0, 0.01)

        output = metrics.export().decode("utf-8")

        assert "cosmostart_operations_total" in output
        assert "cosmostart_request_units_total" in output
        assert "cosmostart_operation_duration_seconds" in output
        assert metrics.get_content_type().startswith("text/plain")
