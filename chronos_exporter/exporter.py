"""Prometheus collector that scrapes Chronos on every collection."""
import logging
import threading
import time
from typing import Iterator, List, Optional

from prometheus_client import Counter, Gauge
from prometheus_client.metrics_core import Metric

from chronos_exporter.errors import ScrapeError, UpstreamError
from chronos_exporter.mapper import Mapper
from chronos_exporter.registry import MetricRegistry
from chronos_exporter.scraper import ChronosScraper
from chronos_exporter.snapshot import SnapshotNode
from chronos_exporter.translator import SnapshotTranslator, TranslationReport

logger = logging.getLogger(__name__)

NAMESPACE = "chronos"
SUBSYSTEM = "exporter"


class SelfMetrics:
    """Self-monitoring metrics for the exporter."""

    def __init__(self, namespace: str = NAMESPACE):
        opts = dict(namespace=namespace, subsystem=SUBSYSTEM, registry=None)

        self.duration = Gauge(
            "last_scrape_duration_seconds",
            "Duration of the last scrape of metrics from Chronos.",
            **opts
        )

        self.scrape_error = Gauge(
            "last_scrape_error",
            "Whether the last scrape of metrics from Chronos resulted in an error (1 for error, 0 for success).",
            **opts
        )

        self.total_scrapes = Counter(
            "scrapes_total",
            "Total number of times Chronos was scraped for metrics.",
            **opts
        )

        self.total_errors = Counter(
            "errors_total",
            "Total number of times the exporter experienced errors collecting Chronos metrics.",
            **opts
        )

        self.malformed_metrics = Counter(
            "malformed_metrics_total",
            "Total number of Chronos metrics skipped because they could not be translated.",
            **opts
        )

    def record_scrape(self, duration: float, failed: bool, malformed: int = 0):
        """Record the outcome of one scrape."""
        self.duration.set(duration)
        if failed:
            self.total_errors.inc()
            self.scrape_error.set(1)
        else:
            self.scrape_error.set(0)
        if malformed:
            self.malformed_metrics.inc(malformed)

    def metrics(self):
        return [
            self.duration,
            self.total_scrapes,
            self.total_errors,
            self.scrape_error,
            self.malformed_metrics,
        ]


class ChronosExporter:
    """
    Custom collector translating the Chronos metrics snapshot.

    Each collection scrapes Chronos once and then yields every metric the
    registry has ever seen (last known values persist across scrapes),
    followed by the exporter's own metrics.
    """

    def __init__(self, scraper: ChronosScraper, registry: Optional[MetricRegistry] = None):
        self.scraper = scraper
        self.registry = registry if registry is not None else MetricRegistry()
        self.mapper = Mapper(self.registry)
        self.translator = SnapshotTranslator(self.mapper)
        self.self_metrics = SelfMetrics()

        self.last_report: Optional[TranslationReport] = None
        self.last_scrape_time: Optional[float] = None
        self.last_error: Optional[str] = None

        # Concurrent pulls must not translate at the same time
        self._lock = threading.Lock()

    def describe(self) -> List[Metric]:
        # Metric names are only known after scraping
        return []

    def collect(self) -> Iterator[Metric]:
        logger.debug("Collecting metrics")
        with self._lock:
            self.scrape()
            families = list(self.registry.collect())
            for metric in self.self_metrics.metrics():
                families.extend(metric.collect())
        yield from families

    def scrape(self) -> Optional[TranslationReport]:
        """
        Fetch and translate one snapshot.

        Returns:
            TranslationReport, or None when the scrape failed
        """
        self.self_metrics.total_scrapes.inc()
        begin = time.time()
        report = None
        error = None

        try:
            content = self.scraper.scrape()
            report = self.translator.translate(SnapshotNode(content))
        except ScrapeError as e:
            error = str(e)
            logger.debug(error)
        except UpstreamError as e:
            error = str(e)
            logger.error(error)

        self.self_metrics.record_scrape(
            time.time() - begin,
            failed=error is not None,
            malformed=len(report.errors) if report else 0,
        )
        self.last_scrape_time = begin
        self.last_error = error
        if report is not None:
            self.last_report = report
        return report
