"""Canonical naming for Codahale metric names and rate/percentile fields."""
import re
from typing import Dict, Tuple

SYMBOL_EXPR = re.compile(r"[.$\-()]")
JOBS_CAPTURE_EXPR = re.compile(r"jobs\.run\.(\w+)\.([\w-]+)")
METRIC_NAME_EXPR = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")

RATE_NAMES = {
    "m1_rate": "1m",
    "m5_rate": "5m",
    "m15_rate": "15m",
}


def canonicalize(raw_name: str) -> Tuple[str, Dict[str, str]]:
    """
    Map a raw dotted metric name to a Prometheus-style name and label set.

    Chronos embeds the job id in per-job metric names
    (``jobs.run.<group>.<job>``); the id is lifted into a ``job`` label so
    every job shares one metric family.

    Args:
        raw_name: Metric name as reported in the snapshot

    Returns:
        Tuple of (canonical name, labels)
    """
    labels: Dict[str, str] = {}
    name = raw_name

    match = JOBS_CAPTURE_EXPR.search(name)
    if match:
        name = "jobs_run_" + match.group(1)
        labels["job"] = match.group(2)

    name = SYMBOL_EXPR.sub("_", name)
    name = name.rstrip("_")
    return name.lower(), labels


def valid_metric_name(name: str) -> bool:
    """
    Check a canonical name is usable as a Prometheus metric name.

    Names must match [a-zA-Z_:][a-zA-Z0-9_:]*
    """
    return bool(METRIC_NAME_EXPR.match(name))


def rename_rate(field: str) -> str:
    """Rate field name to its ``rate`` label value (``m1_rate`` -> ``1m``)."""
    if field in RATE_NAMES:
        return RATE_NAMES[field]
    if field.endswith("_rate"):
        return field[:-len("_rate")]
    return field


def rename_percentile(field: str) -> str:
    """Percentile field name to its ``percentile`` label value (``p99`` -> ``0.99``)."""
    return "0." + field[1:]
