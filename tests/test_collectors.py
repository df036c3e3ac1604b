import threading

import pytest

from fichart.monitoring.collectors import BaseCollector, SimpleCollector
from fichart.monitoring.metrics_domain import BaseMetric, MetricKind, new_value


class RecordingPublisher:
    def __init__(self):
        self.lock = threading.Lock()
        self.metrics = None
        self.batches = []

    def publish(self, metrics):
        with self.lock:
            self.metrics = metrics
            self.batches.append(list(metrics))


class FailingPublisher:
    def publish(self, metrics):
        raise RuntimeError("publish failed")


def _metric(raw=42.0):
    return BaseMetric(
        "test_metric", MetricKind.GAUGE, new_value(raw, {"test": "label"}), "Test metric"
    )


def test_new_collector_is_empty():
    publisher = RecordingPublisher()
    collector = BaseCollector(publisher)
    assert collector.collect() == []
    assert publisher.metrics == []


def test_add_and_collect_metrics():
    publisher = RecordingPublisher()
    collector = BaseCollector(publisher)
    metric = _metric()
    collector.add_metric(metric)
    metrics = collector.collect()
    assert len(metrics) == 1
    assert metrics[0].name == metric.name
    assert metrics[0].value.raw == metric.value.raw
    assert len(publisher.metrics) == 1


def test_collect_clears_buffer():
    collector = BaseCollector(RecordingPublisher())
    collector.add_metric(_metric())
    collector.collect()
    assert collector.collect() == []


def test_reset_metrics():
    collector = BaseCollector(RecordingPublisher())
    collector.add_metric(_metric())
    collector.reset()
    assert collector.collect() == []


def test_failed_publish_keeps_metrics():
    collector = BaseCollector(FailingPublisher())
    collector.add_metric(_metric())
    with pytest.raises(RuntimeError):
        collector.collect()
    collector._publisher = RecordingPublisher()
    assert len(collector.collect()) == 1


def test_collector_is_thread_safe():
    publisher = RecordingPublisher()
    collector = BaseCollector(publisher)
    iterations = 1000
    collected = []

    def add():
        for i in range(iterations):
            collector.add_metric(_metric(float(i)))

    def collect():
        for _ in range(iterations // 2):
            collected.extend(collector.collect())

    threads = [threading.Thread(target=add), threading.Thread(target=collect)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    collected.extend(collector.collect())

    assert len(collected) == iterations
    assert sorted(m.value.raw for m in collected) == [float(i) for i in range(iterations)]


def test_simple_collector_uses_base_behaviour():
    publisher = RecordingPublisher()
    collector = SimpleCollector(publisher)
    metric = _metric()
    collector.add_metric(metric)
    metrics = collector.collect()
    assert len(metrics) == 1
    assert metrics[0].name == metric.name
    assert metrics[0].value.raw == metric.value.raw
    assert len(publisher.metrics) == 1