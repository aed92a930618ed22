from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from insights.analytics.errors import ParameterError


class ReportKind(str, Enum):
    """Identifiers of the reports this service can generate."""

    MONTHLY_TICKET_SUMMARY = "monthly-ticket-summary"
    CUSTOMER_ACTIVITY = "customer-activity"
    SLA_PERFORMANCE = "sla-performance"
    REVENUE_ANALYSIS = "revenue-analysis"


@dataclass(frozen=True, slots=True)
class ReportDefinition:
    id: ReportKind
    name: str
    type: str
    description: str


REPORT_CATALOG: tuple[ReportDefinition, ...] = (
    ReportDefinition(
        id=ReportKind.MONTHLY_TICKET_SUMMARY,
        name="Monthly Ticket Summary",
        type="tickets",
        description="Comprehensive overview of ticket activity for a specific month",
    ),
    ReportDefinition(
        id=ReportKind.CUSTOMER_ACTIVITY,
        name="Customer Activity Report",
        type="customers",
        description="Ticket counts and resolution times per customer",
    ),
    ReportDefinition(
        id=ReportKind.SLA_PERFORMANCE,
        name="SLA Performance Report",
        type="performance",
        description="SLA compliance rates and breach analysis",
    ),
    ReportDefinition(
        id=ReportKind.REVENUE_ANALYSIS,
        name="Revenue Analysis",
        type="financial",
        description="Billing data and revenue trends in Rand",
    ),
)

_BY_KIND = {definition.id: definition for definition in REPORT_CATALOG}


def available_reports() -> list[ReportDefinition]:
    return list(REPORT_CATALOG)


def parse_report_kind(value: ReportKind | str) -> ReportKind:
    if isinstance(value, ReportKind):
        return value
    try:
        return ReportKind(value)
    except ValueError as exc:
        raise ParameterError(f"Unknown report id: {value!r}") from exc


def get_report_definition(kind: ReportKind | str) -> ReportDefinition:
    return _BY_KIND[parse_report_kind(kind)]
