"""Typed metric stores keyed by canonical name."""
import logging
import threading
from typing import Dict, Iterator, List, Set, Tuple

from prometheus_client import Counter, Gauge
from prometheus_client.metrics import MetricWrapperBase
from prometheus_client.metrics_core import Metric

logger = logging.getLogger(__name__)


class MetricContainer:
    """
    Fetch-or-create store of labeled metric vectors.

    The first registration of a name fixes its help text and label-key
    schema; later fetches return the same vector unchanged.
    """

    metric_class = MetricWrapperBase
    kind = "metric"

    def __init__(self):
        self._metrics: Dict[str, MetricWrapperBase] = {}
        self._schemas: Dict[str, Tuple[str, ...]] = {}
        self._drift_warned: Set[Tuple[str, Tuple[str, ...]]] = set()
        self._lock = threading.Lock()

    def fetch(self, name: str, help_text: str, *label_keys: str) -> Tuple[MetricWrapperBase, bool]:
        """
        Return the vector registered under ``name``, creating it on first sight.

        Args:
            name: Canonical metric name
            help_text: Help text used only when the vector is created
            label_keys: Label-key schema used only when the vector is created

        Returns:
            Tuple of (metric vector, whether it was created by this call)
        """
        with self._lock:
            metric = self._metrics.get(name)
            if metric is not None:
                self._check_schema(name, tuple(label_keys))
                return metric, False

            # Raises ValueError for names Prometheus rejects; nothing is stored.
            metric = self.metric_class(name, help_text, label_keys, registry=None)
            self._metrics[name] = metric
            self._schemas[name] = tuple(label_keys)

        logger.debug(f"Registered {self.kind} {name} with labels {list(label_keys)}")
        return metric, True

    def _check_schema(self, name: str, label_keys: Tuple[str, ...]) -> bool:
        schema = self._schemas[name]
        if set(schema) == set(label_keys):
            return True
        key = (name, tuple(sorted(label_keys)))
        if key not in self._drift_warned:
            self._drift_warned.add(key)
            logger.warning(
                f"{self.kind.capitalize()} {name} was registered with labels {list(schema)}, "
                f"ignoring requested labels {list(label_keys)}"
            )
        return False

    def accepts(self, name: str, *label_keys: str) -> bool:
        """
        Whether ``name`` can be used with ``label_keys``.

        True for unknown names and for names registered with the same key set.
        A mismatch is reported like a drifting fetch.
        """
        with self._lock:
            if name not in self._schemas:
                return True
            return self._check_schema(name, tuple(label_keys))

    def schema(self, name: str) -> Tuple[str, ...]:
        """Label keys fixed when ``name`` was first registered."""
        with self._lock:
            return self._schemas[name]

    def metrics(self) -> List[MetricWrapperBase]:
        """Point-in-time list of every vector in the store."""
        with self._lock:
            return list(self._metrics.values())

    def names(self) -> List[str]:
        with self._lock:
            return list(self._metrics.keys())

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._metrics

    def __len__(self) -> int:
        with self._lock:
            return len(self._metrics)


class CounterContainer(MetricContainer):
    """Store for monotonic values (counts)."""

    metric_class = Counter
    kind = "counter"


class GaugeContainer(MetricContainer):
    """Store for point-in-time values (rates, percentiles, gauges)."""

    metric_class = Gauge
    kind = "gauge"


class MetricRegistry:
    """Owns one counter store and one gauge store."""

    def __init__(self):
        self.counters = CounterContainer()
        self.gauges = GaugeContainer()

    def collect(self) -> Iterator[Metric]:
        """Yield the metric families of every known vector, counters first."""
        for counter in self.counters.metrics():
            yield from counter.collect()
        for gauge in self.gauges.metrics():
            yield from gauge.collect()

    def __len__(self) -> int:
        return len(self.counters) + len(self.gauges)


def series(metric: MetricWrapperBase, labels: Dict[str, str]) -> MetricWrapperBase:
    """
    Child series of ``metric`` for ``labels``; the metric itself when unlabeled.

    Raises ValueError when ``labels`` does not match the metric's label names.
    """
    return metric.labels(**labels) if labels else metric


def set_counter(counter: Counter, value: float, labels: Dict[str, str]):
    """Set a counter series to an absolute value."""
    # prometheus_client counters only expose inc(); upstream counts are absolute
    value_holder = getattr(series(counter, labels), "_value", None)
    if value_holder is None:
        # Labeled parents hold no value of their own
        raise ValueError(f"Counter {counter} is missing label values")
    value_holder.set(value)


def set_gauge(gauge: Gauge, value: float, labels: Dict[str, str]):
    series(gauge, labels).set(value)
