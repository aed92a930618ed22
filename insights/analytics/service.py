from __future__ import annotations

import asyncio
import logging
from datetime import timezone, tzinfo
from typing import Awaitable, Sequence, TypeVar

from insights.core.logging import get_tracer
from insights.metrics import MetricsRegistry, metrics_registry as default_metrics_registry, register_default_metrics
from insights.metrics.definitions import (
    COMPUTATION_DURATION_SECONDS,
    COMPUTATION_FAILURES_TOTAL,
    COMPUTATIONS_TOTAL,
    RECORDS_EXCLUDED_TOTAL,
)

from .categories import get_category_distribution
from .errors import ComputationTimeoutError, FetchFailure, ParameterError
from .models import CategoryBucket, MetricsSnapshot, TicketRecord, TimelineEntry, TrendBucket
from .repository import SnapshotSource
from .summary import compute_summary, count_unparseable_created
from .trends import TrendGranularity, get_trends

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_computation(
    computation: str,
    operation: Awaitable[T],
    *,
    timeout: float | None,
    metrics: MetricsRegistry,
) -> T:
    """Await ``operation`` under a deadline, recording duration and failures.

    A computation either returns its complete result or raises: timeouts become
    :class:`ComputationTimeoutError`, fetch failures and cancellation propagate.
    """

    labels = {"computation": computation}
    metrics.counter(COMPUTATIONS_TOTAL).inc(labels=labels)
    with get_tracer().start_as_current_span(f"insights.{computation}"):
        with metrics.time_distribution(COMPUTATION_DURATION_SECONDS, labels=labels):
            try:
                if timeout is None:
                    return await operation
                return await asyncio.wait_for(operation, timeout=timeout)
            except asyncio.TimeoutError as exc:
                metrics.counter(COMPUTATION_FAILURES_TOTAL).inc(labels={**labels, "reason": "timeout"})
                logger.warning("Computation '%s' exceeded %.1fs deadline", computation, timeout)
                raise ComputationTimeoutError(
                    f"Computation '{computation}' did not finish within {timeout} seconds"
                ) from exc
            except FetchFailure as exc:
                metrics.counter(COMPUTATION_FAILURES_TOTAL).inc(labels={**labels, "reason": "fetch"})
                logger.error("Computation '%s' aborted: %s", computation, exc)
                raise
            except asyncio.CancelledError:
                metrics.counter(COMPUTATION_FAILURES_TOTAL).inc(labels={**labels, "reason": "cancelled"})
                logger.info("Computation '%s' cancelled", computation)
                raise


class AnalyticsService:
    """Dashboard metrics, trends and category distribution over a fresh snapshot per call."""

    def __init__(
        self,
        source: SnapshotSource,
        *,
        timeout_seconds: float | None = 30.0,
        timeline_concurrency: int = 16,
        tz: tzinfo = timezone.utc,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        if timeline_concurrency < 1:
            raise ValueError("timeline_concurrency must be at least 1")
        self._source = source
        self._timeout_seconds = timeout_seconds
        self._timeline_concurrency = timeline_concurrency
        self._tz = tz
        self._metrics = metrics or default_metrics_registry
        register_default_metrics(self._metrics)

    async def get_metrics(self, *, timeout: float | None = None) -> MetricsSnapshot:
        return await run_computation(
            "dashboard_metrics",
            self._compute_metrics(),
            timeout=self._effective_timeout(timeout),
            metrics=self._metrics,
        )

    async def get_trends(
        self,
        granularity: TrendGranularity | str,
        count: int,
        *,
        timeout: float | None = None,
    ) -> list[TrendBucket]:
        resolved_granularity = parse_granularity(granularity)
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise ParameterError(f"count must be a positive integer, got {count!r}")
        return await run_computation(
            "ticket_trends",
            self._compute_trends(resolved_granularity, count),
            timeout=self._effective_timeout(timeout),
            metrics=self._metrics,
        )

    async def get_category_distribution(self, *, timeout: float | None = None) -> list[CategoryBucket]:
        return await run_computation(
            "category_distribution",
            self._compute_categories(),
            timeout=self._effective_timeout(timeout),
            metrics=self._metrics,
        )

    async def _compute_metrics(self) -> MetricsSnapshot:
        tickets = await self._source.list_tickets()
        self._record_exclusions("created_at", count_unparseable_created(tickets))
        timelines = await self._fetch_timelines(tickets)
        return compute_summary(tickets, timelines)

    async def _compute_trends(self, granularity: TrendGranularity, count: int) -> list[TrendBucket]:
        tickets = await self._source.list_tickets()
        self._record_exclusions("created_at", count_unparseable_created(tickets))
        return get_trends(tickets, granularity, count, tz=self._tz)

    async def _compute_categories(self) -> list[CategoryBucket]:
        tickets = await self._source.list_tickets()
        return get_category_distribution(tickets)

    async def _fetch_timelines(self, tickets: Sequence[TicketRecord]) -> dict[str, Sequence[TimelineEntry]]:
        """Fetch every ticket's timeline concurrently, bounded by a semaphore.

        A ticket whose timeline cannot be read is left out of first-response
        time; any other error aborts the computation.
        """

        semaphore = asyncio.Semaphore(self._timeline_concurrency)
        ticket_ids = list(dict.fromkeys(ticket.id for ticket in tickets))

        async def fetch(ticket_id: str) -> Sequence[TimelineEntry]:
            async with semaphore:
                return await self._source.list_timeline(ticket_id)

        results = await asyncio.gather(*(fetch(ticket_id) for ticket_id in ticket_ids), return_exceptions=True)

        timelines: dict[str, Sequence[TimelineEntry]] = {}
        failed = 0
        for ticket_id, result in zip(ticket_ids, results):
            if isinstance(result, FetchFailure):
                failed += 1
                continue
            if isinstance(result, BaseException):
                raise result
            timelines[ticket_id] = result
        if failed:
            logger.warning("Skipped %d of %d ticket timelines that could not be fetched", failed, len(ticket_ids))
            self._record_exclusions("first_response_time", failed)
        return timelines

    def _record_exclusions(self, aggregate: str, count: int) -> None:
        if count:
            logger.debug("Excluded %d records from '%s'", count, aggregate)
            self._metrics.counter(RECORDS_EXCLUDED_TOTAL).inc(count, labels={"aggregate": aggregate})

    def _effective_timeout(self, timeout: float | None) -> float | None:
        return timeout if timeout is not None else self._timeout_seconds


def parse_granularity(value: TrendGranularity | str) -> TrendGranularity:
    if isinstance(value, TrendGranularity):
        return value
    try:
        return TrendGranularity(str(value).lower())
    except ValueError as exc:
        raise ParameterError(f"Unsupported trend granularity: {value!r}") from exc
