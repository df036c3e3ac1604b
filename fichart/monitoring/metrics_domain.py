"""Metric values, metric records and the publisher contract used by collectors."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Mapping, Protocol, Sequence, runtime_checkable

TYPE_METRIC_COLLECTED = "metric.collected"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MetricKind(str, Enum):
    """The kind of a metric as understood by exporters."""

    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"
    SUMMARY = "summary"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Value:
    """A raw metric reading with its labels and the time it was taken."""

    raw: float
    labels: dict[str, str] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_now)

    def __post_init__(self) -> None:
        if self.labels is None:
            object.__setattr__(self, "labels", {})

    def with_label(self, key: str, value: str) -> Value:
        """Return a copy with one more label."""
        return replace(self, labels={**self.labels, key: value})

    def with_labels(self, labels: Mapping[str, str]) -> Value:
        """Return a copy with the given labels merged in."""
        return replace(self, labels={**self.labels, **labels})


def new_value(raw: float, labels: dict[str, str] | None = None) -> Value:
    """Create a value stamped with the current time."""
    return Value(float(raw), labels if labels is not None else {})


@runtime_checkable
class Metric(Protocol):
    """Anything that can be collected and exported as a metric."""

    @property
    def name(self) -> str:
        """The metric's name."""

    @property
    def kind(self) -> str:
        """The metric's kind."""

    @property
    def value(self) -> Value:
        """The metric's current value."""

    @property
    def description(self) -> str:
        """A human readable description."""


@dataclass(frozen=True)
class BaseMetric:
    """A plain metric record."""

    name: str
    kind: str
    value: Value
    description: str


class SimpleMetric:
    """A metric built from a bare number, with labels added on demand."""

    __slots__ = ("_name", "_kind", "_value", "_description")

    def __init__(self, name: str, kind: str, raw: float, description: str) -> None:
        self._name = name
        self._kind = kind
        self._value = new_value(raw)
        self._description = description

    @property
    def name(self) -> str:
        return self._name

    @property
    def kind(self) -> str:
        return self._kind

    @property
    def value(self) -> Value:
        return self._value

    @property
    def description(self) -> str:
        return self._description

    def with_labels(self, labels: Mapping[str, str]) -> SimpleMetric:
        """Return a new metric whose value carries the extra labels."""
        labelled = SimpleMetric(self._name, self._kind, self._value.raw, self._description)
        labelled._value = self._value.with_labels(labels)
        return labelled

    def __repr__(self) -> str:
        return (
            f"SimpleMetric(name={self._name!r}, kind={self._kind!r}, "
            f"value={self._value!r}, description={self._description!r})"
        )


class Publisher(Protocol):
    """Receives batches of collected metrics."""

    def publish(self, metrics: Sequence[Metric]) -> None:
        """Publish the given metrics; raise on failure."""


@dataclass
class MetricEvent:
    """An event carrying a batch of metrics."""

    metrics: list[Metric] = field(default_factory=list)
    type: str = TYPE_METRIC_COLLECTED
    timestamp: datetime = field(default_factory=_now)