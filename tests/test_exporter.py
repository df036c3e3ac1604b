import pytest

from fichart.monitoring.exporter import (
    Counter,
    Exporter,
    Gauge,
    Histogram,
    RegistrationError,
    Registry,
    Summary,
    UnsupportedMetricTypeError,
)
from fichart.monitoring.metrics_domain import BaseMetric, MetricKind, new_value


def _sample(family, name, labels=None):
    for sample_name, sample_labels, value in family.samples:
        if sample_name == name and sample_labels == (labels or {}):
            return value
    raise KeyError(name)


def test_new_exporter_is_empty():
    exporter = Exporter()
    assert exporter.registry.gather() == []


def test_exporter_exports_metrics():
    exporter = Exporter()
    metrics = [
        BaseMetric("test_counter", MetricKind.COUNTER, new_value(42.0, {"label": "value"}), "Test counter metric"),
        BaseMetric("test_gauge", MetricKind.GAUGE, new_value(123.45, {"label": "value"}), "Test gauge metric"),
    ]
    exporter.export(metrics)
    families = exporter.registry.gather()
    assert len(families) == 2
    for family in families:
        assert family.name in {"test_counter", "test_gauge"}
        assert len(family.samples) == 1
    by_name = {f.name: f for f in families}
    assert _sample(by_name["test_counter"], "test_counter") == 42.0
    assert _sample(by_name["test_gauge"], "test_gauge") == 123.45


def test_exporter_handles_different_metric_types():
    exporter = Exporter()
    metrics = [
        BaseMetric("test_counter", MetricKind.COUNTER, new_value(1.0), "Test counter"),
        BaseMetric("test_gauge", MetricKind.GAUGE, new_value(2.0), "Test gauge"),
        BaseMetric("test_histogram", MetricKind.HISTOGRAM, new_value(3.0), "Test histogram"),
        BaseMetric("test_summary", MetricKind.SUMMARY, new_value(4.0), "Test summary"),
    ]
    exporter.export(metrics)
    families = exporter.registry.gather()
    assert len(families) == 4
    assert {f.name: f.type for f in families} == {
        "test_counter": "counter",
        "test_gauge": "gauge",
        "test_histogram": "histogram",
        "test_summary": "summary",
    }
    histogram = next(f for f in families if f.name == "test_histogram")
    assert _sample(histogram, "test_histogram_count") == 1.0
    assert _sample(histogram, "test_histogram_sum") == 3.0
    assert _sample(histogram, "test_histogram_bucket", {"le": "+Inf"}) == 1.0
    assert _sample(histogram, "test_histogram_bucket", {"le": "2.5"}) == 0.0
    assert _sample(histogram, "test_histogram_bucket", {"le": "5"}) == 1.0
    summary = next(f for f in families if f.name == "test_summary")
    assert _sample(summary, "test_summary_sum") == 4.0


def test_exporter_updates_existing_metrics():
    exporter = Exporter()
    exporter.export([BaseMetric("test_counter", MetricKind.COUNTER, new_value(1.0), "Test counter")])
    exporter.export([BaseMetric("test_counter", MetricKind.COUNTER, new_value(2.0), "Test counter")])
    families = exporter.registry.gather()
    assert len(families) == 1
    assert families[0].name == "test_counter"
    assert _sample(families[0], "test_counter") == 3.0


def test_exporter_rejects_invalid_metric_type():
    exporter = Exporter()
    metric = BaseMetric("test_invalid", "invalid", new_value(1.0), "Test invalid metric")
    with pytest.raises(UnsupportedMetricTypeError, match="unsupported metric type"):
        exporter.export([metric])
    assert exporter.registry.gather() == []


def test_duplicate_registration_is_rejected():
    exporter = Exporter()
    exporter.export([BaseMetric("test_counter", MetricKind.COUNTER, new_value(1.0), "Test counter")])
    with pytest.raises(RegistrationError, match="previously registered descriptor"):
        exporter.registry.register(Counter("test_counter", "Duplicate counter"))


def test_registering_same_collector_twice_is_rejected():
    registry = Registry()
    gauge = Gauge("g", "help")
    registry.register(gauge)
    with pytest.raises(RegistrationError, match="duplicate"):
        registry.register(gauge)


def test_invalid_metric_name_is_rejected():
    registry = Registry()
    with pytest.raises(RegistrationError, match="not a valid metric name"):
        registry.register(Gauge("bad-name", "help"))


def test_export_gauge_with_labels():
    exporter = Exporter()
    metric = BaseMetric(
        "test_metric",
        MetricKind.GAUGE,
        new_value(42.0, {"label1": "value1", "label2": "value2"}),
        "Test metric description",
    )
    exporter.export([metric])
    assert _sample(exporter.registry.gather()[0], "test_metric") == 42.0


def test_gauge_keeps_last_value():
    exporter = Exporter()
    exporter.export([BaseMetric("g", "gauge", new_value(5.0), "g")])
    exporter.export([BaseMetric("g", "gauge", new_value(1.5), "g")])
    assert _sample(exporter.registry.gather()[0], "g") == 1.5


def test_counter_cannot_decrease():
    counter = Counter("c", "help")
    with pytest.raises(ValueError):
        counter.add(-1)


def test_histogram_rejects_unordered_buckets():
    with pytest.raises(ValueError):
        Histogram("h", "help", [1.0, 0.5])


def test_render_text_format():
    registry = Registry()
    counter = Counter("test_counter", "Test counter")
    registry.register(counter)
    counter.add(3.0)
    summary = Summary("test_summary", "Test summary")
    registry.register(summary)
    summary.observe(4.0)
    assert registry.render() == (
        "# HELP test_counter Test counter\n"
        "# TYPE test_counter counter\n"
        "test_counter 3\n"
        "# HELP test_summary Test summary\n"
        "# TYPE test_summary summary\n"
        "test_summary_sum 4\n"
        "test_summary_count 1\n"
    )


def test_render_histogram_bucket_labels():
    registry = Registry()
    histogram = Histogram("h", "help", [1.0])
    registry.register(histogram)
    histogram.observe(0.5)
    rendered = registry.render()
    assert 'h_bucket{le="1"} 1\n' in rendered
    assert 'h_bucket{le="+Inf"} 1\n' in rendered
    assert "h_sum 0.5\n" in rendered