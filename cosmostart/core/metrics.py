"""
Store Operation Metrics

Prometheus metrics for the document store operations performed by a
walkthrough run: operation counts, request unit consumption and latency.

Author: CosmoStart Contributors
Date: 2026-10-17
"""

import time
from contextlib import contextmanager
from typing import Iterator, Optional

from prometheus_client import (
    Counter,
    Histogram,
    CollectorRegistry,
    generate_latest,
    CONTENT_TYPE_LATEST,
)


class StoreMetrics:
    """
    Prometheus metrics collector for document store operations.

    Each instance owns its own registry unless one is passed in, so several
    runs in one process (and tests) do not collide on metric names.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        Initialize metrics collectors.

        Args:
            registry: Prometheus registry (a private one if None)
        """
        self.registry = registry if registry is not None else CollectorRegistry()

        self.operations_total = Counter(
            'cosmostart_operations_total',
            'Store operations performed',
            ['operation', 'status'],
            registry=self.registry
        )

        self.request_units_total = Counter(
            'cosmostart_request_units_total',
            'Request units consumed',
            ['operation'],
            registry=self.registry
        )

        self.operation_duration_seconds = Histogram(
            'cosmostart_operation_duration_seconds',
            'Store operation duration',
            ['operation'],
            buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
            registry=self.registry
        )

    def track_operation(self, operation: str, status: str, request_charge: float, duration: float) -> None:
        """
        Track a completed store operation.

        Args:
            operation: Operation name (read_item, create_item, query, ...)
            status: Outcome label (ok, not_found, error, ...)
            request_charge: Request units consumed
            duration: Operation duration in seconds
        """
        self.operations_total.labels(operation=operation, status=status).inc()
        if request_charge:
            self.request_units_total.labels(operation=operation).inc(request_charge)
        self.operation_duration_seconds.labels(operation=operation).observe(duration)

    @contextmanager
    def timed(self, operation: str) -> Iterator["OperationTimer"]:
        """
        Time an operation and record it when the block exits.

        The block sets ``timer.request_charge`` and optionally
        ``timer.status``; an exception leaving the block is recorded with
        status ``error`` and re-raised.

        Example:
            ```python
            with metrics.timed("create_item") as timer:
                response = await store.create_item(...)
                timer.request_charge = response.request_charge
            ```
        """
        timer = OperationTimer()
        start = time.perf_counter()
        try:
            yield timer
        except Exception:
            timer.status = "error"
            raise
        finally:
            self.track_operation(operation, timer.status, timer.request_charge, time.perf_counter() - start)

    def total_request_units(self) -> float:
        """Sum of request units recorded across all operations."""
        total = 0.0
        for metric in self.request_units_total.collect():
            for sample in metric.samples:
                if sample.name.endswith("_total"):
                    total += sample.value
        return round(total, 2)

    def operation_count(self, operation: str, status: str = "ok") -> int:
        """Number of recorded operations with the given name and status."""
        value = self.registry.get_sample_value(
            'cosmostart_operations_total',
            {'operation': operation, 'status': status}
        )
        return int(value or 0)

    def export(self) -> bytes:
        """
        Generate Prometheus metrics output.

        Returns:
            Metrics in Prometheus text format
        """
        return generate_latest(self.registry)

    def get_content_type(self) -> str:
        """Prometheus metrics content type."""
        return CONTENT_TYPE_LATEST


class OperationTimer:
    """Mutable outcome of a timed operation."""

    def __init__(self):
        self.status = "ok"
        self.request_charge = 0.0
