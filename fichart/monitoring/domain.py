"""Core monitoring metrics, their storage contracts and their events."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol


def _now() -> datetime:
    return datetime.now(timezone.utc)


class EventType(str, Enum):
    """Kinds of monitoring events."""

    METRIC_COLLECTED = "METRIC_COLLECTED"
    ALERT_TRIGGERED = "alert_triggered"

    def __str__(self) -> str:
        return self.value


@dataclass
class Event:
    """A monitoring event with an arbitrary payload."""

    type: EventType
    timestamp: datetime
    data: Any


def new_monitoring_event(event_type: EventType, data: Any) -> Event:
    """Create an event stamped with the current time."""
    return Event(type=event_type, timestamp=_now(), data=data)


class Handler(Protocol):
    """Reacts to events."""

    def handle(self, event: Event) -> None:
        """Handle one event; raise on failure."""


class Publisher(Protocol):
    """Publishes events."""

    def publish(self, event: Event) -> None:
        """Publish an event; raise on failure."""


class MetricType(str, Enum):
    """Kinds of business metrics."""

    ASSET_VALUE = "ASSET_VALUE"
    TRANSACTION_COUNT = "TRANSACTION_COUNT"
    PORTFOLIO_VALUE = "PORTFOLIO_VALUE"
    USER_COUNT = "USER_COUNT"
    GITHUB = "GITHUB"
    GAUGE = "GAUGE"

    def __str__(self) -> str:
        return self.value


def is_valid_metric_type(metric_type: str) -> bool:
    """Whether the given type is one of the known metric types."""
    try:
        MetricType(metric_type)
    except ValueError:
        return False
    return True


class MetricError(Exception):
    """Base class for metric errors."""

    default_message = "metric error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class InvalidMetricIDError(MetricError):
    default_message = "invalid metric id"


class InvalidMetricTypeError(MetricError):
    default_message = "invalid metric type"


class MetricCollectionFailedError(MetricError):
    default_message = "metric collection failed"


class MetricSaveFailedError(MetricError):
    default_message = "metric save failed"


@dataclass
class MetricValue:
    """A metric reading with its labels; the labels mapping is shared, not copied."""

    value: float
    labels: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.labels is None:
            self.labels = {}

    def add(self, other: MetricValue) -> MetricValue:
        """Sum two values, keeping this value's labels."""
        return MetricValue(self.value + other.value, self.labels)


@dataclass
class Metric:
    """A business metric observed at a point in time."""

    id: str
    metric_type: str
    value: MetricValue
    timestamp: datetime

    def validate(self) -> None:
        """Raise if the id is empty or the type is unknown."""
        if not self.id:
            raise InvalidMetricIDError()
        if not is_valid_metric_type(self.metric_type):
            raise InvalidMetricTypeError()


@dataclass
class MetricFilter:
    """Conditions for selecting stored metrics."""

    metric_type: str
    start_time: int
    end_time: int
    labels: dict[str, str] | None = None


class MetricStorage(Protocol):
    """Stores and queries batches of metrics."""

    def save(self, metrics: list[Metric]) -> None:
        """Store metrics; raise on failure."""

    def get(self, metric_filter: MetricFilter) -> list[Metric]:
        """Return metrics matching the filter."""


class MetricRepository(Protocol):
    """Stores and looks up single metrics."""

    def save(self, metric: Metric) -> None:
        """Store a metric; raise on failure."""

    def find_by_id(self, metric_id: str) -> Metric:
        """Return the metric with the given id."""

    def find_by_type(self, metric_type: str) -> list[Metric]:
        """Return metrics of the given type."""

    def find_by_time_range(self, start: datetime, end: datetime) -> list[Metric]:
        """Return metrics observed within the range."""