"""Translation of a Codahale metrics snapshot into registry updates."""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from chronos_exporter.errors import MalformedMetricError, SnapshotValueError, UpstreamError
from chronos_exporter.mapper import HistogramHandles, Mapper, MetricKind
from chronos_exporter.registry import set_counter, set_gauge
from chronos_exporter.rename import rename_percentile, rename_rate
from chronos_exporter.snapshot import SnapshotNode

logger = logging.getLogger(__name__)

VERSION_METRIC = "metrics_version"
VERSION_HELP = "Chronos metrics version"

PERCENTILE_FIELDS = ("p50", "p75", "p95", "p98", "p99", "p999")
TIMER_RATE_FIELDS = ("mean_rate", "m1_rate", "m5_rate", "m15_rate")
STAT_FIELDS = ("min", "max", "mean", "stddev")


@dataclass
class TranslationReport:
    """Outcome of translating one snapshot."""
    created: List[Tuple[str, str]] = field(default_factory=list)
    updated: int = 0
    errors: List[MalformedMetricError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class SnapshotTranslator:
    """Writes every metric of a snapshot into the registry behind a Mapper."""

    def __init__(self, mapper: Mapper):
        self.mapper = mapper
        self._handlers = {
            MetricKind.COUNTER: self._counter,
            MetricKind.GAUGE: self._gauge,
            MetricKind.METER: self._meter,
            MetricKind.HISTOGRAM: self._histogram,
            MetricKind.TIMER: self._timer,
        }

    def translate(self, snapshot: SnapshotNode) -> TranslationReport:
        """
        Update the registry from one snapshot.

        A snapshot carrying ``message`` is an upstream error report: nothing
        is written and UpstreamError is raised. Otherwise each metric is
        translated independently; failures are collected in the report and
        never stop the remaining metrics. Every field of a metric is read and
        its label schemas checked before the first write, so a skipped metric
        leaves the registry untouched.

        Args:
            snapshot: Root node of the decoded snapshot

        Returns:
            TranslationReport listing created metrics and per-metric errors
        """
        if "message" in snapshot:
            message = snapshot.child("message").data
            raise UpstreamError(message if isinstance(message, str) else repr(message))

        report = TranslationReport()

        if "version" in snapshot:
            self._version(snapshot.child("version"), report)

        for kind in MetricKind:
            for metric, node in snapshot.child(kind.value).children().items():
                self._translate_metric(kind, metric, node, report)

        return report

    def _translate_metric(self, kind: MetricKind, metric: str, node: SnapshotNode, report: TranslationReport):
        try:
            created = self._handlers[kind](metric, node)
        except SnapshotValueError as e:
            error = MalformedMetricError(
                kind.label, metric, str(e),
                field=e.key, value=e.value,
            )
        except ValueError as e:
            # Invalid canonical name, or labels that do not fit the registered schema
            error = MalformedMetricError(kind.label, metric, str(e))
        else:
            report.updated += 1
            if created:
                report.created.append((kind.label, metric))
                logger.info(f'Added {kind.label} "{metric}"')
            return

        report.errors.append(error)
        logger.debug(str(error))

    def _version(self, node: SnapshotNode, report: TranslationReport):
        try:
            version = node.string()
        except SnapshotValueError as e:
            error = MalformedMetricError("version", "version", str(e), field="version", value=e.value)
            report.errors.append(error)
            logger.error(str(error))
            return

        gauges = self.mapper.registry.gauges
        if not gauges.accepts(VERSION_METRIC, "version"):
            # A snapshot gauge took the name first
            error = MalformedMetricError("version", "version", f"{VERSION_METRIC} is already registered")
            report.errors.append(error)
            logger.error(str(error))
            return

        gauge, created = gauges.fetch(VERSION_METRIC, VERSION_HELP, "version")
        # Only the current version is reported
        gauge.clear()
        set_gauge(gauge, 1, {"version": version})
        if created:
            report.created.append(("gauge", VERSION_METRIC))

    def _counter(self, metric: str, node: SnapshotNode) -> bool:
        count = node.child("count").number()

        handles, created = self.mapper.resolve(MetricKind.COUNTER, metric)
        set_counter(handles.counter, count, handles.labels)
        return created

    def _gauge(self, metric: str, node: SnapshotNode) -> bool:
        value = node.child("value").number()

        handles, created = self.mapper.resolve(MetricKind.GAUGE, metric)
        set_gauge(handles.gauge, value, handles.labels)
        return created

    def _meter(self, metric: str, node: SnapshotNode) -> bool:
        count = node.child("count").number()
        units = node.child("units").string()
        rates = {
            rename_rate(key): prop.number()
            for key, prop in node.children().items()
            if "rate" in key and prop.is_number
        }

        handles, created = self.mapper.resolve(MetricKind.METER, metric, units)
        set_counter(handles.count, count, handles.labels)
        for rate, value in rates.items():
            set_gauge(handles.rates, value, _with(handles.labels, rate=rate))
        return created

    def _histogram(self, metric: str, node: SnapshotNode) -> bool:
        count = node.child("count").number()
        percentiles, stats = _read_distribution(node)

        handles, created = self.mapper.resolve(MetricKind.HISTOGRAM, metric)
        set_counter(handles.count, count, handles.labels)
        self._distribution(handles, percentiles, stats)
        return created

    def _timer(self, metric: str, node: SnapshotNode) -> bool:
        count = node.child("count").number()
        units = node.child("rate_units").string()
        rates = _read_numbers(node, TIMER_RATE_FIELDS)
        percentiles, stats = _read_distribution(node)

        handles, created = self.mapper.resolve(MetricKind.TIMER, metric, units)
        set_counter(handles.count, count, handles.labels)
        for key, value in rates.items():
            set_gauge(handles.rates, value, _with(handles.labels, rate=rename_rate(key)))
        self._distribution(handles, percentiles, stats)
        return created

    @staticmethod
    def _distribution(handles: HistogramHandles, percentiles: Dict[str, float], stats: Dict[str, float]):
        """Percentiles and min/max/mean/stddev shared by histograms and timers."""
        for key, value in percentiles.items():
            set_gauge(
                handles.percentiles, value,
                _with(handles.labels, percentile=rename_percentile(key)),
            )

        for key, value in stats.items():
            set_gauge(getattr(handles, key), value, handles.labels)


def _read_numbers(node: SnapshotNode, keys: Tuple[str, ...]) -> Dict[str, float]:
    """Optional numeric fields; absent or non-numeric ones are skipped."""
    return {key: node.child(key).number() for key in keys if node.child(key).is_number}


def _read_distribution(node: SnapshotNode) -> Tuple[Dict[str, float], Dict[str, float]]:
    return _read_numbers(node, PERCENTILE_FIELDS), _read_numbers(node, STAT_FIELDS)


def _with(labels: Dict[str, str], **extra: str) -> Dict[str, str]:
    merged = dict(labels)
    merged.update(extra)
    return merged
