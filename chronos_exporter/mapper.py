"""Per-kind mapping from raw metric names to registry handles."""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from prometheus_client import Counter, Gauge

from chronos_exporter.registry import MetricContainer, MetricRegistry
from chronos_exporter.rename import canonicalize, valid_metric_name

COUNTER_HELP = "Chronos counter {}"
GAUGE_HELP = "Chronos gauge {}"
METER_HELP = "Chronos meter {} ({})"
HISTOGRAM_HELP = "Chronos histogram {}"
TIMER_HELP = "Chronos timer {} ({})"


class MetricKind(str, Enum):
    """Metric kinds in a Codahale snapshot; values are the group keys."""
    COUNTER = "counters"
    GAUGE = "gauges"
    METER = "meters"
    HISTOGRAM = "histograms"
    TIMER = "timers"

    @property
    def label(self) -> str:
        return self.value[:-1]


@dataclass
class CounterHandles:
    labels: Dict[str, str]
    counter: Counter


@dataclass
class GaugeHandles:
    labels: Dict[str, str]
    gauge: Gauge


@dataclass
class MeterHandles:
    labels: Dict[str, str]
    count: Counter
    rates: Gauge


@dataclass
class HistogramHandles:
    labels: Dict[str, str]
    count: Counter
    percentiles: Gauge
    min: Gauge
    max: Gauge
    mean: Gauge
    stddev: Gauge


@dataclass
class TimerHandles(HistogramHandles):
    rates: Gauge


Handles = Union[CounterHandles, GaugeHandles, MeterHandles, HistogramHandles, TimerHandles]


class Mapper:
    """Resolves the registry handles each metric kind needs."""

    def __init__(self, registry: MetricRegistry):
        self.registry = registry

    def resolve(self, kind: MetricKind, metric: str, units: Optional[str] = None) -> Tuple[Handles, bool]:
        """
        Fetch (or create) every handle backing one raw metric.

        Args:
            kind: Metric kind
            metric: Raw metric name
            units: Units string, used in meter and timer help texts

        Returns:
            Tuple of (handle bundle, whether the primary handle was created)

        Raises:
            ValueError: if the canonical name is not a valid metric name, or a
                handle it needs is registered with other label keys
        """
        if kind is MetricKind.COUNTER:
            return self.counter(metric)
        if kind is MetricKind.GAUGE:
            return self.gauge(metric)
        if kind is MetricKind.METER:
            return self.meter(metric, units or "")
        if kind is MetricKind.HISTOGRAM:
            return self.histogram(metric)
        if kind is MetricKind.TIMER:
            return self.timer(metric, units or "")
        raise ValueError(f"Unknown metric kind: {kind}")

    def counter(self, metric: str) -> Tuple[CounterHandles, bool]:
        name, labels = self._rename(metric)
        help_text = COUNTER_HELP.format(metric)
        keys = self._label_keys(labels)
        self._check_schemas((self.registry.counters, name, keys))

        counter, created = self.registry.counters.fetch(name, help_text, *keys)
        return CounterHandles(labels, counter), created

    def gauge(self, metric: str) -> Tuple[GaugeHandles, bool]:
        name, labels = self._rename(metric)
        help_text = GAUGE_HELP.format(metric)
        keys = self._label_keys(labels)
        self._check_schemas((self.registry.gauges, name, keys))

        gauge, created = self.registry.gauges.fetch(name, help_text, *keys)
        return GaugeHandles(labels, gauge), created

    def meter(self, metric: str, units: str) -> Tuple[MeterHandles, bool]:
        name, labels = self._rename(metric)
        help_text = METER_HELP.format(metric, units)
        keys = self._label_keys(labels)
        self._check_schemas(
            (self.registry.counters, name + "_count", keys),
            (self.registry.gauges, name, keys + ["rate"]),
        )

        count, created = self.registry.counters.fetch(name + "_count", help_text, *keys)
        rates, _ = self.registry.gauges.fetch(name, help_text, *keys, "rate")
        return MeterHandles(labels, count, rates), created

    def histogram(self, metric: str) -> Tuple[HistogramHandles, bool]:
        name, labels = self._rename(metric)
        help_text = HISTOGRAM_HELP.format(metric)
        return self._summary_handles(name, labels, help_text)

    def timer(self, metric: str, units: str) -> Tuple[TimerHandles, bool]:
        name, labels = self._rename(metric)
        help_text = TIMER_HELP.format(metric, units)
        return self._summary_handles(name, labels, help_text, with_rates=True)

    def _summary_handles(self, name: str, labels: Dict[str, str], help_text: str, with_rates: bool = False):
        """Handles shared by histograms and timers; timers add a rate gauge."""
        keys = self._label_keys(labels)
        gauges = self.registry.gauges

        wanted = [
            (self.registry.counters, name + "_count", keys),
            (gauges, name, keys + ["percentile"]),
        ]
        wanted += [(gauges, name + suffix, keys) for suffix in ("_min", "_max", "_mean", "_stddev")]
        if with_rates:
            wanted.append((gauges, name + "_rate", keys + ["rate"]))
        self._check_schemas(*wanted)

        count, created = self.registry.counters.fetch(name + "_count", help_text, *keys)
        fields = dict(
            labels=labels,
            count=count,
            percentiles=gauges.fetch(name, help_text, *keys, "percentile")[0],
            min=gauges.fetch(name + "_min", help_text, *keys)[0],
            max=gauges.fetch(name + "_max", help_text, *keys)[0],
            mean=gauges.fetch(name + "_mean", help_text, *keys)[0],
            stddev=gauges.fetch(name + "_stddev", help_text, *keys)[0],
        )
        if with_rates:
            rates, _ = gauges.fetch(name + "_rate", help_text, *keys, "rate")
            return TimerHandles(rates=rates, **fields), created
        return HistogramHandles(**fields), created

    @staticmethod
    def _rename(metric: str) -> Tuple[str, Dict[str, str]]:
        name, labels = canonicalize(metric)
        if not valid_metric_name(name):
            raise ValueError(f"Invalid metric name {name!r} derived from {metric!r}")
        return name, labels

    @staticmethod
    def _check_schemas(*wanted: Tuple[MetricContainer, str, List[str]]):
        """Reject the metric before anything is fetched when one handle has another schema."""
        for container, name, keys in wanted:
            if not container.accepts(name, *keys):
                raise ValueError(
                    f"{container.kind.capitalize()} {name} is registered with labels "
                    f"{list(container.schema(name))}, not {keys}"
                )

    @staticmethod
    def _label_keys(labels: Dict[str, str]) -> List[str]:
        return list(labels.keys())
