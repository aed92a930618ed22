"""The four report documents, generated from an already-fetched snapshot.

Generators are pure: given the same records and parameters they produce the
same ``data`` and ``summary``. Only ``generated_at`` comes from the clock.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timezone, tzinfo
from typing import Any, Callable, Iterable

from insights.analytics.categories import category_key
from insights.analytics.errors import ParameterError
from insights.analytics.models import (
    DEFAULT_PRIORITY,
    CustomerRecord,
    InvoiceRecord,
    InvoiceStatus,
    ReportDocument,
    TicketPriority,
    TicketRecord,
)
from insights.analytics.summary import avg_resolution_time_hours, percentage, round_one
from insights.analytics.timestamps import hours_between, isoformat_utc, normalize_timestamp

from .currency import DEFAULT_SYMBOL, format_currency

UNKNOWN_CUSTOMER_ID = "unknown"
UNKNOWN_CUSTOMER_NAME = "Unknown"

# Older tickets were written with "urgent" before the vocabulary settled on "critical".
_PRIORITY_ALIASES = {"urgent": TicketPriority.CRITICAL.value}


def validate_month(year: int, month: int) -> None:
    if isinstance(year, bool) or not isinstance(year, int) or not 1 <= year <= 9999:
        raise ParameterError(f"year must be an integer between 1 and 9999, got {year!r}")
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise ParameterError(f"month must be an integer between 1 and 12, got {month!r}")


def validate_date_range(start_date: date, end_date: date) -> None:
    for name, value in (("start_date", start_date), ("end_date", end_date)):
        if not isinstance(value, date) or isinstance(value, datetime):
            raise ParameterError(f"{name} must be a calendar date, got {value!r}")
    if start_date > end_date:
        raise ParameterError(f"start_date {start_date.isoformat()} is after end_date {end_date.isoformat()}")


def normalize_priority(priority: str | None) -> str:
    value = (priority or "").strip().lower()
    if not value:
        return DEFAULT_PRIORITY
    return _PRIORITY_ALIASES.get(value, value)


def _money(value: float) -> float:
    return round(value, 2)


class ReportGenerator:
    """Build :class:`ReportDocument` instances from record snapshots."""

    def __init__(
        self,
        *,
        clock: Callable[[], datetime] | None = None,
        tz: tzinfo = timezone.utc,
        currency_symbol: str = DEFAULT_SYMBOL,
    ) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._tz = tz
        self._currency_symbol = currency_symbol

    def monthly_ticket_summary(self, tickets: Iterable[TicketRecord], year: int, month: int) -> ReportDocument:
        """Tickets created in the given calendar month with category/priority breakdowns."""

        validate_month(year, month)
        month_tickets: list[TicketRecord] = []
        for ticket in tickets:
            created = normalize_timestamp(ticket.created_at)
            if created is None:
                continue
            local = created.astimezone(self._tz)
            if local.year == year and local.month == month:
                month_tickets.append(ticket)

        resolved_count = sum(1 for ticket in month_tickets if ticket.is_resolved)

        category_breakdown: dict[str, int] = {}
        priority_breakdown: dict[str, int] = {}
        for ticket in month_tickets:
            category = category_key(ticket)
            category_breakdown[category] = category_breakdown.get(category, 0) + 1
            priority = normalize_priority(ticket.priority)
            priority_breakdown[priority] = priority_breakdown.get(priority, 0) + 1

        return ReportDocument(
            title=f"Monthly Ticket Summary - {calendar.month_name[month]} {year}",
            generated_at=self._clock(),
            data={
                "tickets": [ticket.to_payload() for ticket in month_tickets],
                "category_breakdown": dict(category_breakdown),
                "priority_breakdown": dict(priority_breakdown),
            },
            summary={
                "total_created": len(month_tickets),
                "total_resolved": resolved_count,
                "resolution_rate": percentage(resolved_count, len(month_tickets)),
                "avg_resolution_time_hours": avg_resolution_time_hours(month_tickets),
                "category_breakdown": dict(category_breakdown),
                "priority_breakdown": dict(priority_breakdown),
            },
        )

    def customer_activity(
        self,
        tickets: Iterable[TicketRecord],
        customers: Iterable[CustomerRecord],
        customer_id: str | None = None,
    ) -> ReportDocument:
        """Per-customer ticket counts and resolution times, busiest customers first."""

        names = {customer.id: customer.name for customer in customers}
        selected = [ticket for ticket in tickets if customer_id is None or ticket.company_id == customer_id]

        grouped: dict[str, list[TicketRecord]] = {}
        for ticket in selected:
            grouped.setdefault(ticket.company_id or UNKNOWN_CUSTOMER_ID, []).append(ticket)

        rows = []
        for company_id, company_tickets in grouped.items():
            resolved = sum(1 for ticket in company_tickets if ticket.is_resolved)
            rows.append(
                {
                    "customer_id": company_id,
                    "customer_name": names.get(company_id, UNKNOWN_CUSTOMER_NAME),
                    "total_tickets": len(company_tickets),
                    "open_tickets": len(company_tickets) - resolved,
                    "resolved_tickets": resolved,
                    "avg_resolution_time_hours": avg_resolution_time_hours(company_tickets),
                }
            )
        rows.sort(key=lambda row: -row["total_tickets"])

        if customer_id is None:
            title = "Customer Activity Report - All Customers"
        else:
            title = f"Customer Activity Report - {names.get(customer_id, UNKNOWN_CUSTOMER_NAME)}"

        return ReportDocument(
            title=title,
            generated_at=self._clock(),
            data={"customers": rows},
            summary={
                "total_customers": len(rows),
                "total_tickets": len(selected),
                "avg_tickets_per_customer": round_one(len(selected) / len(rows)) if rows else 0.0,
            },
        )

    def sla_performance(self, tickets: Iterable[TicketRecord]) -> ReportDocument:
        """Compliance of resolved tickets against their SLA deadline, with every breach listed."""

        priority_breakdown: dict[str, dict[str, int]] = {
            priority.value: {"total": 0, "compliant": 0, "breached": 0} for priority in TicketPriority
        }
        breach_details: list[dict[str, Any]] = []
        compliant = 0
        breached = 0
        resolution_hours_total = 0.0
        sla_window_hours_total = 0.0
        timed = 0

        for ticket in tickets:
            if not ticket.is_resolved:
                continue
            deadline = normalize_timestamp(ticket.sla_deadline)
            resolved_at = normalize_timestamp(ticket.updated_at)
            if deadline is None or resolved_at is None:
                continue

            priority = normalize_priority(ticket.priority)
            bucket = priority_breakdown.setdefault(priority, {"total": 0, "compliant": 0, "breached": 0})
            bucket["total"] += 1

            created = normalize_timestamp(ticket.created_at)
            if created is not None:
                resolution_hours_total += hours_between(created, resolved_at)
                sla_window_hours_total += hours_between(created, deadline)
                timed += 1

            if resolved_at <= deadline:
                compliant += 1
                bucket["compliant"] += 1
                continue

            breached += 1
            bucket["breached"] += 1
            breach_details.append(
                {
                    "ticket_id": ticket.id,
                    "title": ticket.title,
                    "priority": priority,
                    "sla_deadline": isoformat_utc(deadline),
                    "resolved_at": isoformat_utc(resolved_at),
                    "breach_time_hours": round_one(hours_between(deadline, resolved_at)),
                }
            )

        qualifying = compliant + breached
        return ReportDocument(
            title="SLA Performance Report",
            generated_at=self._clock(),
            data={
                "breach_details": breach_details,
                "priority_breakdown": _copy_breakdown(priority_breakdown),
            },
            summary={
                "total_tickets": qualifying,
                "compliant_tickets": compliant,
                "breached_tickets": breached,
                "compliance_rate": percentage(compliant, qualifying),
                "avg_resolution_time_hours": round_one(resolution_hours_total / timed) if timed else 0.0,
                "avg_sla_time_hours": round_one(sla_window_hours_total / timed) if timed else 0.0,
                "priority_breakdown": _copy_breakdown(priority_breakdown),
            },
        )

    def revenue_analysis(
        self,
        invoices: Iterable[InvoiceRecord],
        customers: Iterable[CustomerRecord],
        start_date: date,
        end_date: date,
    ) -> ReportDocument:
        """Invoice revenue issued within ``[start_date, end_date]``, by status, customer and month."""

        validate_date_range(start_date, end_date)
        names = {customer.id: customer.name for customer in customers}

        period_invoices: list[tuple[InvoiceRecord, datetime]] = []
        for invoice in invoices:
            issued = normalize_timestamp(invoice.issue_date)
            if issued is None:
                continue
            local = issued.astimezone(self._tz)
            if start_date <= local.date() <= end_date:
                period_invoices.append((invoice, local))

        totals = {"total": 0.0, **{status.value: 0.0 for status in InvoiceStatus}}
        status_counts = {status.value: 0 for status in InvoiceStatus}
        by_customer: dict[str, dict[str, Any]] = {}
        monthly: dict[str, dict[str, Any]] = {}

        for invoice, issued in period_invoices:
            amount = invoice.numeric_amount
            is_paid = invoice.status == InvoiceStatus.PAID.value
            totals["total"] += amount
            if invoice.status in status_counts:
                totals[invoice.status] += amount
                status_counts[invoice.status] += 1

            customer_key = invoice.customer_id or UNKNOWN_CUSTOMER_ID
            customer_row = by_customer.get(customer_key)
            if customer_row is None:
                customer_row = by_customer[customer_key] = {
                    "customer_id": customer_key,
                    "name": names.get(customer_key, UNKNOWN_CUSTOMER_NAME),
                    "total": 0.0,
                    "paid": 0.0,
                    "pending": 0.0,
                }
            customer_row["total"] += amount
            # Anything not yet paid (pending or overdue) is outstanding for the customer.
            customer_row["paid" if is_paid else "pending"] += amount

            month = f"{issued.year:04d}-{issued.month:02d}"
            trend = monthly.setdefault(month, {"invoice_count": 0, "revenue": 0.0})
            trend["invoice_count"] += 1
            if is_paid:
                trend["revenue"] += amount

        customer_revenue = [
            {**row, "total": _money(row["total"]), "paid": _money(row["paid"]), "pending": _money(row["pending"])}
            for row in sorted(by_customer.values(), key=lambda row: -row["total"])
        ]
        monthly_trends = {
            month: {"invoice_count": monthly[month]["invoice_count"], "revenue": _money(monthly[month]["revenue"])}
            for month in sorted(monthly)
        }
        invoice_count = len(period_invoices)
        average_value = totals["total"] / invoice_count if invoice_count else 0.0

        return ReportDocument(
            title=f"Revenue Analysis Report - {start_date.isoformat()} to {end_date.isoformat()}",
            generated_at=self._clock(),
            data={
                "invoices": [invoice.to_payload() for invoice, _ in period_invoices],
                "customer_revenue": customer_revenue,
                "monthly_trends": monthly_trends,
            },
            summary={
                "total_revenue": self._currency(totals["total"]),
                "paid_revenue": self._currency(totals[InvoiceStatus.PAID.value]),
                "pending_revenue": self._currency(totals[InvoiceStatus.PENDING.value]),
                "overdue_revenue": self._currency(totals[InvoiceStatus.OVERDUE.value]),
                "total_invoices": invoice_count,
                "paid_invoices": status_counts[InvoiceStatus.PAID.value],
                "pending_invoices": status_counts[InvoiceStatus.PENDING.value],
                "overdue_invoices": status_counts[InvoiceStatus.OVERDUE.value],
                "avg_invoice_value": self._currency(average_value),
                "customer_revenue": [dict(row) for row in customer_revenue],
            },
        )

    def _currency(self, amount: float) -> str:
        return format_currency(amount, symbol=self._currency_symbol)


def _copy_breakdown(breakdown: dict[str, dict[str, int]]) -> dict[str, dict[str, int]]:
    return {priority: dict(counts) for priority, counts in breakdown.items()}
