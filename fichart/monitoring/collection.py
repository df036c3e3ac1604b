"""Bridges between metric models, and periodic collectors with their manager."""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Protocol, Sequence

from fichart.monitoring import collectors
from fichart.monitoring.domain import (
    EventType,
    Metric as DomainMetric,
    MetricRepository,
    MetricStorage,
    MetricType,
    MetricValue,
    Publisher as DomainPublisher,
    new_monitoring_event,
)
from fichart.monitoring.metrics_domain import Metric, Value, new_value

_log = logging.getLogger(__name__)


class MetricAdapter:
    """Presents a business metric as a collectable metric."""

    __slots__ = ("_metric", "_name", "_description")

    def __init__(self, metric: DomainMetric) -> None:
        self._metric = metric
        self._name = metric.id
        self._description = "Monitoring metric"

    @property
    def name(self) -> str:
        return self._name

    @property
    def kind(self) -> str:
        return str(self._metric.metric_type)

    @property
    def value(self) -> Value:
        reading = self._metric.value
        return new_value(reading.value, reading.labels)

    @property
    def description(self) -> str:
        return self._description


class DomainPublisherAdapter:
    """Publishes collected metrics as one business-metric event."""

    def __init__(self, publisher: DomainPublisher) -> None:
        self._publisher = publisher

    def publish(self, metrics: Sequence[Metric]) -> None:
        """Convert the metrics and publish them in a single event."""
        converted = []
        for metric in metrics:
            value = metric.value
            converted.append(
                DomainMetric(
                    id=metric.name,
                    metric_type=str(metric.kind),
                    value=MetricValue(value.raw, value.labels),
                    timestamp=value.timestamp,
                )
            )
        self._publisher.publish(new_monitoring_event(EventType.METRIC_COLLECTED, converted))


class SimpleCollector(collectors.BaseCollector):
    """A buffering collector that publishes to a business-event publisher."""

    def __init__(self, publisher: DomainPublisher) -> None:
        super().__init__(DomainPublisherAdapter(publisher))


class MetricCollector(Protocol):
    """A collector that can run on its own schedule."""

    def collect(self) -> None:
        """Collect metrics once; raise on failure."""

    def start(self) -> None:
        """Begin collecting in the background."""

    def stop(self) -> None:
        """Stop collecting and wait for the background work to end."""


def _seconds(interval: timedelta | float) -> float:
    seconds = interval.total_seconds() if isinstance(interval, timedelta) else float(interval)
    if seconds <= 0:
        raise ValueError("interval must be positive")
    return seconds


class BaseMetricCollector:
    """Calls collect() every interval in a background thread until stopped.

    Subclasses supply the actual collection by overriding collect(); the base
    version only records that a collection round took place.
    """

    def __init__(self, interval: timedelta | float, storage: MetricStorage | None) -> None:
        self.interval = _seconds(interval)
        self.storage = storage
        self.rounds = 0
        self.last_collected: datetime | None = None
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Start the periodic collection thread."""
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.collect()
            except Exception:  # noqa: BLE001 - keep collecting on later ticks
                _log.exception("metric collection failed")

    def stop(self) -> None:
        """Stop the collection thread and wait for it to finish."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()

    def collect(self) -> None:
        """Record one collection round; subclasses add the real gathering."""
        with self._lock:
            self.rounds += 1
            self.last_collected = datetime.now(timezone.utc)


class MetricCollectorManager:
    """Runs a set of collectors and stores a summary metric after each round."""

    def __init__(
        self,
        repository: MetricRepository,
        collectors: Sequence[MetricCollector],
        interval: timedelta | float = 1.0,
    ) -> None:
        self.repository = repository
        self.collectors = list(collectors)
        self.interval = _seconds(interval)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Start every collector, then collect repeatedly in the background."""
        for collector in self.collectors:
            collector.start()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.collect()
            except Exception:  # noqa: BLE001 - retry on the next round
                _log.exception("metric collection round failed")
            self._stop.wait(self.interval)

    def stop(self) -> None:
        """Stop every collector and the background loop."""
        for collector in self.collectors:
            collector.stop()
        self._stop.set()
        if self._thread is not None:
            self._thread.join()

    def collect(self) -> None:
        """Run each collector once, then save the summary metric.

        The first failure, from a collector or from the repository, is raised.
        """
        for collector in self.collectors:
            collector.collect()

        metric = DomainMetric(
            id="test_metric",
            metric_type=MetricType.GAUGE,
            value=MetricValue(42.0, {"test": "label"}),
            timestamp=datetime.now(timezone.utc),
        )
        self.repository.save(metric)