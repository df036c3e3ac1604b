"""A small metrics registry in the Prometheus text format and an exporter feeding it."""
from __future__ import annotations

import math
import re
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from fichart.monitoring.metrics_domain import Metric

DEFAULT_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)

_NAME_RE = re.compile(r"[a-zA-Z_:][a-zA-Z0-9_:]*\Z")

Sample = tuple[str, dict, float]


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


def _escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


def _escape_label(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


class _Collector(ABC):
    kind = ""

    def __init__(self, name: str, help: str) -> None:  # noqa: A002 - Prometheus naming
        self.name = name
        self.help = help
        self._lock = threading.Lock()

    @abstractmethod
    def _samples(self) -> list[Sample]:
        """Current samples as (name, labels, value)."""


class Counter(_Collector):
    """A monotonically increasing value."""

    kind = "counter"

    def __init__(self, name: str, help: str) -> None:  # noqa: A002
        super().__init__(name, help)
        self._value = 0.0

    def add(self, amount: float = 1.0) -> None:
        """Increase the counter; a negative amount raises ValueError."""
        if amount < 0:
            raise ValueError("counter cannot decrease in value")
        with self._lock:
            self._value += amount

    def _samples(self) -> list[Sample]:
        with self._lock:
            return [(self.name, {}, self._value)]


class Gauge(_Collector):
    """A value that can go up and down."""

    kind = "gauge"

    def __init__(self, name: str, help: str) -> None:  # noqa: A002
        super().__init__(name, help)
        self._value = 0.0

    def set(self, value: float) -> None:
        """Set the gauge."""
        with self._lock:
            self._value = float(value)

    def _samples(self) -> list[Sample]:
        with self._lock:
            return [(self.name, {}, self._value)]


class Histogram(_Collector):
    """Counts observations in cumulative buckets."""

    kind = "histogram"

    def __init__(
        self, name: str, help: str, buckets: Iterable[float] | None = None  # noqa: A002
    ) -> None:
        super().__init__(name, help)
        bounds = [b for b in (DEFAULT_BUCKETS if buckets is None else buckets) if not math.isinf(b)]
        if any(lower >= upper for lower, upper in zip(bounds, bounds[1:])):
            raise ValueError("histogram buckets must be in increasing order")
        self._bounds = tuple(float(b) for b in bounds)
        self._counts = [0] * len(self._bounds)
        self._sum = 0.0
        self._count = 0

    def observe(self, value: float) -> None:
        """Record one observation."""
        with self._lock:
            for index, bound in enumerate(self._bounds):
                if value <= bound:
                    self._counts[index] += 1
            self._sum += value
            self._count += 1

    def _samples(self) -> list[Sample]:
        with self._lock:
            samples: list[Sample] = [
                (f"{self.name}_bucket", {"le": _format_float(bound)}, float(count))
                for bound, count in zip(self._bounds, self._counts)
            ]
            samples.append((f"{self.name}_bucket", {"le": "+Inf"}, float(self._count)))
            samples.append((f"{self.name}_sum", {}, self._sum))
            samples.append((f"{self.name}_count", {}, float(self._count)))
            return samples


class Summary(_Collector):
    """Tracks the count and sum of observations."""

    kind = "summary"

    def __init__(self, name: str, help: str) -> None:  # noqa: A002
        super().__init__(name, help)
        self._sum = 0.0
        self._count = 0

    def observe(self, value: float) -> None:
        """Record one observation."""
        with self._lock:
            self._sum += value
            self._count += 1

    def _samples(self) -> list[Sample]:
        with self._lock:
            return [
                (f"{self.name}_sum", {}, self._sum),
                (f"{self.name}_count", {}, float(self._count)),
            ]


@dataclass(frozen=True)
class MetricFamily:
    """A snapshot of one registered collector."""

    name: str
    help: str
    type: str
    samples: tuple = field(default_factory=tuple)


class RegistrationError(Exception):
    """A collector could not be registered."""


class UnsupportedMetricTypeError(Exception):
    """A metric's kind has no matching collector."""


class Registry:
    """Holds collectors by name and renders them."""

    def __init__(self) -> None:
        self._collectors: dict[str, _Collector] = {}
        self._lock = threading.Lock()

    def register(self, collector: _Collector) -> None:
        """Register a collector; raise RegistrationError on a bad or taken name."""
        name = collector.name
        if not _NAME_RE.match(name):
            raise RegistrationError(f'"{name}" is not a valid metric name')
        with self._lock:
            existing = self._collectors.get(name)
            if existing is not None:
                if existing is not collector and existing.help != collector.help:
                    raise RegistrationError(
                        "a previously registered descriptor with the same fully-qualified "
                        f"name as {name} has different label names or a different help string"
                    )
                raise RegistrationError("duplicate metrics collector registration attempted")
            self._collectors[name] = collector

    def gather(self) -> list[MetricFamily]:
        """Snapshot every collector, sorted by name."""
        with self._lock:
            collectors = sorted(self._collectors.values(), key=lambda c: c.name)
        return [
            MetricFamily(c.name, c.help, c.kind, tuple(c._samples())) for c in collectors
        ]

    def render(self) -> str:
        """Render every collector in the text exposition format."""
        lines = []
        for family in self.gather():
            lines.append(f"# HELP {family.name} {_escape_help(family.help)}")
            lines.append(f"# TYPE {family.name} {family.type}")
            for name, labels, value in family.samples:
                if labels:
                    label_text = ",".join(f'{k}="{_escape_label(v)}"' for k, v in labels.items())
                    lines.append(f"{name}{{{label_text}}} {_format_float(value)}")
                else:
                    lines.append(f"{name} {_format_float(value)}")
        return "".join(f"{line}\n" for line in lines)


_FACTORIES = {
    "counter": Counter,
    "gauge": Gauge,
    "histogram": Histogram,
    "summary": Summary,
}


class Exporter:
    """Feeds metrics into collectors registered in its registry."""

    def __init__(self) -> None:
        self.registry = Registry()
        self._collectors: dict[str, _Collector] = {}
        self._lock = threading.Lock()

    def export(self, metrics: Sequence[Metric]) -> None:
        """Apply each metric's value to its collector, creating it on first use.

        Counters add the value, gauges take it, histograms and summaries observe
        it. An unsupported kind or a failed registration is raised.
        """
        with self._lock:
            for metric in metrics:
                collector = self._collector_for(metric)
                raw = metric.value.raw
                if isinstance(collector, Counter):
                    collector.add(raw)
                elif isinstance(collector, Gauge):
                    collector.set(raw)
                elif isinstance(collector, (Histogram, Summary)):
                    collector.observe(raw)

    def _collector_for(self, metric: Metric) -> _Collector:
        existing = self._collectors.get(metric.name)
        if existing is not None:
            return existing
        kind = str(metric.kind)
        factory = _FACTORIES.get(kind)
        if factory is None:
            raise UnsupportedMetricTypeError(f"unsupported metric type: {kind}")
        collector = factory(metric.name, metric.description)
        self.registry.register(collector)
        self._collectors[metric.name] = collector
        return collector