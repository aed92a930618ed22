from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Mapping, Sequence

from insights.analytics.errors import ParameterError
from insights.analytics.models import DownloadRecord, ReportDocument
from insights.analytics.repository import SnapshotSource
from insights.analytics.service import run_computation
from insights.metrics import MetricsRegistry, metrics_registry as default_metrics_registry, register_default_metrics
from insights.metrics.definitions import REPORT_DOWNLOAD_FAILURES_TOTAL, REPORT_GENERATIONS_TOTAL

from .catalog import ReportKind, get_report_definition, parse_report_kind
from .generator import ReportGenerator, validate_date_range, validate_month
from .ledger import DownloadLedger

logger = logging.getLogger(__name__)


class ReportService:
    """Validate parameters, fetch a snapshot and generate report documents.

    Parameters are checked before anything is fetched. Collections a report
    needs are read concurrently. Download auditing is separate from generation:
    a ledger failure is logged and counted but never affects a report.
    """

    def __init__(
        self,
        source: SnapshotSource,
        ledger: DownloadLedger,
        *,
        generator: ReportGenerator | None = None,
        timeout_seconds: float | None = 30.0,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._source = source
        self._ledger = ledger
        self._generator = generator or ReportGenerator()
        self._timeout_seconds = timeout_seconds
        self._metrics = metrics or default_metrics_registry
        register_default_metrics(self._metrics)

    async def monthly_ticket_summary(self, year: int, month: int, *, timeout: float | None = None) -> ReportDocument:
        validate_month(year, month)

        async def build() -> ReportDocument:
            tickets = await self._source.list_tickets()
            return self._generator.monthly_ticket_summary(tickets, year, month)

        return await self._run(ReportKind.MONTHLY_TICKET_SUMMARY, build(), timeout)

    async def customer_activity(
        self, customer_id: str | None = None, *, timeout: float | None = None
    ) -> ReportDocument:
        async def build() -> ReportDocument:
            tickets, customers = await asyncio.gather(self._source.list_tickets(), self._source.list_customers())
            return self._generator.customer_activity(tickets, customers, customer_id or None)

        return await self._run(ReportKind.CUSTOMER_ACTIVITY, build(), timeout)

    async def sla_performance(self, *, timeout: float | None = None) -> ReportDocument:
        async def build() -> ReportDocument:
            tickets = await self._source.list_tickets()
            return self._generator.sla_performance(tickets)

        return await self._run(ReportKind.SLA_PERFORMANCE, build(), timeout)

    async def revenue_analysis(
        self, start_date: date, end_date: date, *, timeout: float | None = None
    ) -> ReportDocument:
        validate_date_range(start_date, end_date)

        async def build() -> ReportDocument:
            invoices, customers = await asyncio.gather(self._source.list_invoices(), self._source.list_customers())
            return self._generator.revenue_analysis(invoices, customers, start_date, end_date)

        return await self._run(ReportKind.REVENUE_ANALYSIS, build(), timeout)

    async def generate(
        self,
        report_id: ReportKind | str,
        parameters: Mapping[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> ReportDocument:
        """Dispatch on ``report_id`` with loosely-typed ``parameters`` (e.g. from a request body)."""

        kind = parse_report_kind(report_id)
        params = dict(parameters or {})
        if kind is ReportKind.MONTHLY_TICKET_SUMMARY:
            return await self.monthly_ticket_summary(
                _int_param(params, "year"), _int_param(params, "month"), timeout=timeout
            )
        if kind is ReportKind.CUSTOMER_ACTIVITY:
            customer_id = params.get("customer_id")
            return await self.customer_activity(str(customer_id) if customer_id else None, timeout=timeout)
        if kind is ReportKind.SLA_PERFORMANCE:
            return await self.sla_performance(timeout=timeout)
        return await self.revenue_analysis(
            _date_param(params, "start_date"), _date_param(params, "end_date"), timeout=timeout
        )

    async def record_download(
        self,
        report_id: ReportKind | str,
        user_id: str,
        parameters: Mapping[str, Any] | None = None,
    ) -> DownloadRecord | None:
        """Append a download audit entry; returns ``None`` if it could not be written."""

        try:
            definition = get_report_definition(report_id)
            return await self._ledger.record(
                definition.id.value, definition.name, user_id, _json_ready(parameters or {})
            )
        except Exception:
            self._metrics.counter(REPORT_DOWNLOAD_FAILURES_TOTAL).inc()
            logger.exception("Failed to record download of report '%s' for user '%s'", report_id, user_id)
            return None

    async def recent_downloads(self, user_id: str, limit: int = 10) -> Sequence[DownloadRecord]:
        return await self._ledger.recent(user_id, limit)

    async def _run(self, kind: ReportKind, operation, timeout: float | None) -> ReportDocument:
        document = await run_computation(
            kind.value,
            operation,
            timeout=timeout if timeout is not None else self._timeout_seconds,
            metrics=self._metrics,
        )
        self._metrics.counter(REPORT_GENERATIONS_TOTAL).inc(labels={"report": kind.value})
        logger.info("Generated report '%s'", document.title)
        return document


def _int_param(params: Mapping[str, Any], name: str) -> int:
    value = params.get(name)
    if isinstance(value, bool):
        raise ParameterError(f"'{name}' must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ParameterError(f"'{name}' must be an integer, got {value!r}")


def _date_param(params: Mapping[str, Any], name: str) -> date:
    value = params.get(name)
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as exc:
            raise ParameterError(f"'{name}' must be an ISO date (YYYY-MM-DD), got {value!r}") from exc
    raise ParameterError(f"'{name}' is required")


def _json_ready(parameters: Mapping[str, Any]) -> dict[str, Any]:
    ready: dict[str, Any] = {}
    for key, value in parameters.items():
        if isinstance(value, (date, datetime)):
            ready[str(key)] = value.isoformat()
        elif value is None or isinstance(value, (str, int, float, bool)):
            ready[str(key)] = value
        else:
            ready[str(key)] = str(value)
    return ready
