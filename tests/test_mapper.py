"""Tests for per-kind handle resolution."""
import pytest
from prometheus_client import Counter, Gauge

from chronos_exporter.mapper import (
    CounterHandles, HistogramHandles, MeterHandles, MetricKind, TimerHandles,
)


def test_metric_kind_group_keys():
    assert [k.value for k in MetricKind] == ["counters", "gauges", "meters", "histograms", "timers"]
    assert MetricKind("timers") is MetricKind.TIMER
    assert MetricKind.HISTOGRAM.label == "histogram"


def test_resolve_counter_uses_canonical_labels(mapper, registry):
    handles, created = mapper.resolve(MetricKind.COUNTER, "jobs.run.failure.etl")

    assert isinstance(handles, CounterHandles)
    assert isinstance(handles.counter, Counter)
    assert created is True
    assert handles.labels == {"job": "etl"}
    assert registry.counters.schema("jobs_run_failure") == ("job",)


def test_resolve_twice_reuses_handles(mapper, registry):
    first, created = mapper.resolve(MetricKind.COUNTER, "jobs.run.failure.etl")
    second, created_again = mapper.resolve(MetricKind.COUNTER, "jobs.run.failure.other")

    assert created is True
    assert created_again is False
    assert first.counter is second.counter
    assert second.labels == {"job": "other"}
    assert len(registry.counters) == 1


def test_resolve_gauge_goes_to_gauge_store(mapper, registry):
    handles, created = mapper.resolve(MetricKind.GAUGE, "jvm.threads.count")

    assert isinstance(handles.gauge, Gauge)
    assert created is True
    assert "jvm_threads_count" in registry.gauges
    assert len(registry.counters) == 0


def test_resolve_meter(mapper, registry):
    handles, created = mapper.resolve(MetricKind.METER, "chronos.scheduler.launched", "events/second")

    assert isinstance(handles, MeterHandles)
    assert created is True
    assert registry.counters.names() == ["chronos_scheduler_launched_count"]
    assert registry.gauges.names() == ["chronos_scheduler_launched"]
    assert registry.gauges.schema("chronos_scheduler_launched") == ("rate",)
    assert handles.count._documentation == "Chronos meter chronos.scheduler.launched (events/second)"


def test_resolve_histogram_keeps_job_label_on_every_handle(mapper, registry):
    handles, created = mapper.resolve(MetricKind.HISTOGRAM, "jobs.run.time.etl")

    assert isinstance(handles, HistogramHandles)
    assert not isinstance(handles, TimerHandles)
    assert registry.counters.schema("jobs_run_time_count") == ("job",)
    assert registry.gauges.schema("jobs_run_time") == ("job", "percentile")
    for suffix in ("_min", "_max", "_mean", "_stddev"):
        assert registry.gauges.schema("jobs_run_time" + suffix) == ("job",)
    assert len(registry.gauges) == 5


def test_resolve_timer(mapper, registry):
    handles, created = mapper.resolve(MetricKind.TIMER, "chronos.api.list", "calls/second")

    assert isinstance(handles, TimerHandles)
    assert created is True
    assert registry.gauges.schema("chronos_api_list_rate") == ("rate",)
    assert registry.gauges.schema("chronos_api_list") == ("percentile",)
    assert len(registry.counters) == 1
    assert len(registry.gauges) == 6


def test_resolve_invalid_name_registers_nothing(mapper, registry):
    with pytest.raises(ValueError):
        mapper.resolve(MetricKind.TIMER, "...", "calls/second")

    assert len(registry) == 0


def test_resolve_schema_conflict_registers_nothing(mapper, registry):
    mapper.resolve(MetricKind.GAUGE, "chronos.api.list")

    with pytest.raises(ValueError, match="chronos_api_list"):
        mapper.resolve(MetricKind.TIMER, "chronos.api.list", "calls/second")

    assert len(registry.counters) == 0
    assert registry.gauges.names() == ["chronos_api_list"]
