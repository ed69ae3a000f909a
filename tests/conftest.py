"""Shared fixtures for exporter tests."""
import copy

import pytest

from chronos_exporter.mapper import Mapper
from chronos_exporter.registry import MetricRegistry
from chronos_exporter.translator import SnapshotTranslator

# Trimmed /metrics document from a Chronos 3.x leader
CHRONOS_SNAPSHOT = {
    "version": "3.0.0",
    "gauges": {
        "jvm.memory.heap.used": {"value": 1024},
        "jvm.threads.count": {"value": 42},
    },
    "counters": {
        "jobs.run.failure.daily-backup": {"count": 3},
        "io.dropwizard.jetty.MutableServletContextHandler.active-requests": {"count": 1},
    },
    "histograms": {
        "jobs.run.time.daily-backup": {
            "count": 5,
            "max": 9.0,
            "mean": 4.5,
            "min": 1.0,
            "p50": 4.0,
            "p75": 6.0,
            "p95": 8.0,
            "p98": 8.5,
            "p99": 9.0,
            "p999": 9.0,
            "stddev": 1.2,
        },
    },
    "meters": {
        "chronos.scheduler.launched": {
            "count": 7,
            "m15_rate": 0.4,
            "m1_rate": 0.2,
            "m5_rate": 0.3,
            "mean_rate": 0.5,
            "units": "events/second",
        },
    },
    "timers": {
        "chronos.api.list": {
            "count": 2,
            "max": 0.3,
            "mean": 0.2,
            "min": 0.1,
            "p50": 0.2,
            "p75": 0.25,
            "p95": 0.3,
            "p98": 0.3,
            "p99": 0.3,
            "p999": 0.3,
            "stddev": 0.05,
            "m15_rate": 0.01,
            "m1_rate": 0.02,
            "m5_rate": 0.03,
            "mean_rate": 0.04,
            "duration_units": "seconds",
            "rate_units": "calls/second",
        },
    },
}


@pytest.fixture
def snapshot():
    return copy.deepcopy(CHRONOS_SNAPSHOT)


@pytest.fixture
def registry():
    return MetricRegistry()


@pytest.fixture
def mapper(registry):
    return Mapper(registry)


@pytest.fixture
def translator(mapper):
    return SnapshotTranslator(mapper)


def collect_samples(collector):
    """Map (sample name, sorted label items) to value for every sample a collector yields."""
    samples = {}
    for family in collector.collect():
        for sample in family.samples:
            samples[(sample.name, tuple(sorted(sample.labels.items())))] = sample.value
    return samples


@pytest.fixture
def sample_value():
    """Read one sample from a collector; None when absent."""
    def read(collector, name, labels=None):
        key = (name, tuple(sorted((labels or {}).items())))
        return collect_samples(collector).get(key)
    return read


@pytest.fixture
def samples():
    return collect_samples
