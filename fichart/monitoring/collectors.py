"""Thread-safe metric buffers that hand their contents to a publisher."""
from __future__ import annotations

import threading

from fichart.monitoring.metrics_domain import Metric, Publisher


class BaseCollector:
    """Buffers metrics and publishes them as a batch on collection."""

    def __init__(self, publisher: Publisher) -> None:
        self._publisher = publisher
        self._metrics: list[Metric] = []
        self._lock = threading.Lock()

    def add_metric(self, metric: Metric) -> None:
        """Buffer a metric until the next collection."""
        with self._lock:
            self._metrics.append(metric)

    def collect(self) -> list[Metric]:
        """Publish and return the buffered metrics, then clear the buffer.

        If publishing fails the error propagates and the buffer is kept.
        """
        with self._lock:
            snapshot = list(self._metrics)
            self._publisher.publish(snapshot)
            self._metrics = []
            return snapshot

    def reset(self) -> None:
        """Discard every buffered metric."""
        with self._lock:
            self._metrics = []


class SimpleCollector(BaseCollector):
    """A collector with the default buffering behaviour."""