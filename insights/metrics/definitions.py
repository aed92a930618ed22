"""Metric definitions used across the service."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class MetricDefinition:
    """Describe a metric that should exist in the registry."""

    name: str
    metric_type: str
    description: str
    label_names: Tuple[str, ...] = ()


COMPUTATIONS_TOTAL = "analytics_computations_total"
COMPUTATION_FAILURES_TOTAL = "analytics_computation_failures_total"
COMPUTATION_DURATION_SECONDS = "analytics_computation_duration_seconds"
RECORDS_EXCLUDED_TOTAL = "analytics_records_excluded_total"
REPORT_GENERATIONS_TOTAL = "report_generations_total"
REPORT_DOWNLOAD_FAILURES_TOTAL = "report_download_failures_total"

DEFAULT_METRIC_DEFINITIONS: Tuple[MetricDefinition, ...] = (
    MetricDefinition(
        name=COMPUTATIONS_TOTAL,
        metric_type="counter",
        description="Metric and report computations started.",
        label_names=("computation",),
    ),
    MetricDefinition(
        name=COMPUTATION_FAILURES_TOTAL,
        metric_type="counter",
        description="Computations aborted by fetch failures, timeouts or cancellation.",
        label_names=("computation", "reason"),
    ),
    MetricDefinition(
        name=COMPUTATION_DURATION_SECONDS,
        metric_type="distribution",
        description="Wall time of computations in seconds.",
        label_names=("computation",),
    ),
    MetricDefinition(
        name=RECORDS_EXCLUDED_TOTAL,
        metric_type="counter",
        description="Records left out of an aggregate because of missing or unparseable fields.",
        label_names=("aggregate",),
    ),
    MetricDefinition(
        name=REPORT_GENERATIONS_TOTAL,
        metric_type="counter",
        description="Report documents generated.",
        label_names=("report",),
    ),
    MetricDefinition(
        name=REPORT_DOWNLOAD_FAILURES_TOTAL,
        metric_type="counter",
        description="Download audit records that could not be written.",
    ),
)
