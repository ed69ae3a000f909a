"""Error taxonomy for scraping and translating Chronos metrics.

 - UpstreamError: the snapshot is an error report; the scrape is aborted
 - MalformedMetricError: one metric could not be translated; it is skipped
 - ScrapeError: the snapshot could not be fetched or decoded
 - SnapshotValueError: a snapshot leaf was missing or had the wrong type
"""
from typing import Any, Optional


class ExporterError(Exception):
    """Base exporter error (do not raise directly)."""


class UpstreamError(ExporterError):
    """Chronos answered with an error message instead of metrics."""

    def __init__(self, message: str):
        super().__init__(f"Problem collecting metrics: {message}")
        self.message = message


class ScrapeError(ExporterError):
    """Fetching or decoding the metrics snapshot failed."""


class SnapshotValueError(ExporterError):
    """A snapshot value is missing or not of the requested type."""

    def __init__(self, path: str, expected: str, value: Any, key: Optional[str] = None):
        super().__init__(f"Unexpected value {value!r} at {path!r} (expected {expected})")
        self.path = path
        self.key = key
        self.expected = expected
        self.value = value


class MalformedMetricError(ExporterError):
    """A single metric could not be translated."""

    def __init__(
        self,
        kind: str,
        metric: str,
        reason: str,
        field: Optional[str] = None,
        value: Any = None,
    ):
        super().__init__(f"Bad {kind}! {metric}: {reason}")
        self.kind = kind
        self.metric = metric
        self.reason = reason
        self.field = field
        self.value = value
