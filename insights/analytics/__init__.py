"""Ticket metrics, trend and category aggregation."""

from .categories import format_category_name, get_category_distribution
from .errors import ComputationTimeoutError, FetchFailure, InsightsError, ParameterError
from .models import (
    CategoryBucket,
    CustomerRecord,
    DownloadRecord,
    InvoiceRecord,
    InvoiceStatus,
    MetricsSnapshot,
    ReportDocument,
    TicketPriority,
    TicketRecord,
    TicketStatus,
    TimelineEntry,
    TimelineEventType,
    TrendBucket,
)
from .repository import SnapshotRepository, SnapshotSource, StaticSnapshotSource
from .service import AnalyticsService
from .summary import compute_summary
from .timestamps import normalize_timestamp
from .trends import TrendGranularity, get_trends

__all__ = [
    "AnalyticsService",
    "CategoryBucket",
    "ComputationTimeoutError",
    "CustomerRecord",
    "DownloadRecord",
    "FetchFailure",
    "InsightsError",
    "InvoiceRecord",
    "InvoiceStatus",
    "MetricsSnapshot",
    "ParameterError",
    "ReportDocument",
    "SnapshotRepository",
    "SnapshotSource",
    "StaticSnapshotSource",
    "TicketPriority",
    "TicketRecord",
    "TicketStatus",
    "TimelineEntry",
    "TimelineEventType",
    "TrendBucket",
    "TrendGranularity",
    "compute_summary",
    "format_category_name",
    "get_category_distribution",
    "get_trends",
    "normalize_timestamp",
]
