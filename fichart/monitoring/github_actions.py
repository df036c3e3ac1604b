"""GitHub Actions run metrics and a collector that publishes them as events."""
from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

from fichart.monitoring.events import EventType, Publisher, new_monitoring_event
from fichart.monitoring.metrics_domain import BaseMetric, Metric, MetricKind, new_value

_STATUS_VALUES = {
    "success": 1.0,
    "failure": 0.0,
    "in_progress": 2.0,
}


class ActionStatus(str, Enum):
    """Outcome of a GitHub Actions run."""

    SUCCESS = "success"
    FAILURE = "failure"
    IN_PROGRESS = "in_progress"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ActionMetric:
    """One workflow run with its status and timing."""

    workflow_name: str
    status: str
    duration: timedelta
    started_at: datetime
    finished_at: datetime

    def to_metric(self) -> Metric:
        """A gauge encoding the status: 1 success, 0 failure, 2 running, -1 other."""
        status = str(self.status)
        return BaseMetric(
            name=self.workflow_name,
            kind=MetricKind.GAUGE,
            value=new_value(_STATUS_VALUES.get(status, -1.0), {"status": status}),
            description="GitHub action run status",
        )

    def to_duration_metric(self) -> Metric:
        """A gauge holding the run time in seconds."""
        return BaseMetric(
            name=f"{self.workflow_name}_duration",
            kind=MetricKind.GAUGE,
            value=new_value(self.duration.total_seconds(), {"action": self.workflow_name}),
            description="GitHub action run time (seconds)",
        )


def new_action_metric(name: str, status: str, duration: timedelta | float) -> ActionMetric:
    """Describe a run that finished now after the given duration."""
    if not isinstance(duration, timedelta):
        duration = timedelta(seconds=duration)
    now = datetime.now(timezone.utc)
    return ActionMetric(
        workflow_name=name,
        status=status,
        duration=duration,
        started_at=now - duration,
        finished_at=now,
    )


class Collector:
    """Buffers GitHub metrics and publishes one event per metric on collection."""

    def __init__(self, publisher: Publisher) -> None:
        self._publisher = publisher
        self._metrics: list[Metric] = []
        self._lock = threading.Lock()

    def add(self, metric: Metric) -> None:
        """Buffer a metric."""
        with self._lock:
            self._metrics.append(metric)

    def collect(self) -> list[Metric]:
        """Publish every buffered metric, clear the buffer and return the metrics.

        A publishing failure is raised and the buffer is left untouched.
        """
        with self._lock:
            result = list(self._metrics)
            for metric in result:
                self._publisher.publish(
                    new_monitoring_event(EventType.METRIC_COLLECTED, metric)
                )
            self._metrics = []
            return result

    def metrics(self) -> list[Metric]:
        """A copy of the buffered metrics."""
        with self._lock:
            return list(self._metrics)