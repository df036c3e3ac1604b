"""GitHub workflow and repository metrics expressed as business metrics."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from fichart.monitoring.domain import (
    EventType,
    InvalidMetricTypeError,
    Metric,
    MetricError,
    MetricType,
    MetricValue,
    Publisher,
    new_monitoring_event,
)
from fichart.monitoring.github_actions import ActionStatus

_STATUS_VALUES = {
    ActionStatus.SUCCESS.value: 1.0,
    ActionStatus.FAILURE.value: 0.0,
    ActionStatus.IN_PROGRESS.value: 2.0,
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_timedelta(duration: timedelta | float) -> timedelta:
    if isinstance(duration, timedelta):
        return duration
    return timedelta(seconds=duration)


@dataclass(frozen=True)
class ActionMetric:
    """A GitHub Actions run of one workflow in one repository."""

    repository: str
    workflow: str
    status: str
    duration: timedelta = timedelta(0)
    timestamp: datetime = field(default_factory=_now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "duration", _as_timedelta(self.duration))

    def to_domain(self) -> Metric:
        """Convert to a business metric.

        Without a duration the value encodes the status (1 success, 0 failure,
        2 running, -1 other); with a positive duration it is the run time in
        seconds.
        """
        status = str(self.status)
        value = _STATUS_VALUES.get(status, -1.0)
        labels = {
            "repository": self.repository,
            "workflow": self.workflow,
            "status": status,
            "metric_type": "action_status",
        }
        if self.duration > timedelta(0):
            labels["metric_type"] = "action_duration"
            value = self.duration.total_seconds()
        return Metric(
            id=f"{self.repository}_{self.workflow}",
            metric_type=MetricType.GITHUB,
            value=MetricValue(value, labels),
            timestamp=self.timestamp,
        )


class ActionCollector:
    """Buffers GitHub Actions metrics and publishes them as one event."""

    def __init__(self, publisher: Publisher) -> None:
        self._publisher = publisher
        self._metrics: list[Metric] = []
        self._lock = threading.Lock()

    def add_action_status_metric(self, repository: str, workflow: str, status: str) -> None:
        """Buffer a status metric for a workflow run."""
        metric = ActionMetric(repository, workflow, status, timedelta(0), _now())
        with self._lock:
            self._metrics.append(metric.to_domain())

    def add_action_duration_metric(
        self, repository: str, workflow: str, duration: timedelta | float
    ) -> None:
        """Buffer a run-time metric for a successful workflow run."""
        metric = ActionMetric(repository, workflow, ActionStatus.SUCCESS, duration, _now())
        with self._lock:
            self._metrics.append(metric.to_domain())

    def collect(self) -> None:
        """Publish all buffered metrics in one event and clear the buffer.

        Nothing is published when the buffer is empty. A publishing failure is
        raised and the buffer is kept.
        """
        with self._lock:
            if not self._metrics:
                return
            event = new_monitoring_event(EventType.METRIC_COLLECTED, list(self._metrics))
            self._publisher.publish(event)
            self._metrics = []

    def reset(self) -> None:
        """Discard every buffered metric."""
        with self._lock:
            self._metrics = []


class RepositoryMetricType(str, Enum):
    """Kinds of repository statistics."""

    STARS = "STARS"
    FORKS = "FORKS"
    ISSUES = "ISSUES"
    PULL_REQUESTS = "PULL_REQUESTS"
    CONTRIBUTORS = "CONTRIBUTORS"

    def __str__(self) -> str:
        return self.value


def is_valid_repository_metric_type(metric_type: str) -> bool:
    """Whether the given type is a known repository statistic."""
    try:
        RepositoryMetricType(metric_type)
    except ValueError:
        return False
    return True


class InvalidRepositoryError(MetricError):
    default_message = "invalid repository"


@dataclass(frozen=True)
class RepositoryMetric:
    """A statistic of a GitHub repository observed at a point in time."""

    repository: str
    metric_type: str
    value: float
    timestamp: datetime

    def validate(self) -> None:
        """Raise if the repository is empty or the type is unknown."""
        if not self.repository:
            raise InvalidRepositoryError()
        if not is_valid_repository_metric_type(self.metric_type):
            raise InvalidMetricTypeError()

    def to_domain(self) -> Metric:
        """Convert to a business metric named '<repository>.<type>'."""
        kind = str(self.metric_type)
        labels = {"repository": self.repository, "type": kind}
        return Metric(
            id=f"{self.repository}.{kind}",
            metric_type=MetricType.GITHUB,
            value=MetricValue(self.value, labels),
            timestamp=self.timestamp,
        )