from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from .timestamps import isoformat_utc, normalize_timestamp


class TicketStatus(str, Enum):
    """Lifecycle states a ticket snapshot can report."""

    OPEN = "open"
    IN_PROGRESS = "in-progress"
    PENDING = "pending"
    RESOLVED = "resolved"


class TicketPriority(str, Enum):
    """Authoritative ticket priority vocabulary."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class InvoiceStatus(str, Enum):
    PAID = "paid"
    PENDING = "pending"
    OVERDUE = "overdue"


class TimelineEventType(str, Enum):
    """Timeline entry kinds written by the ticket subsystem."""

    CREATED = "created"
    STATUS_CHANGED = "status_changed"
    ASSIGNED = "assigned"
    NOTE_ADDED = "note_added"
    FILE_UPLOADED = "file_uploaded"
    PRIORITY_CHANGED = "priority_changed"
    CUSTOMER_MESSAGE = "customer_message"
    TECHNICIAN_MESSAGE = "technician_message"
    PROGRESS_CHANGED = "progress_changed"
    TICKET_CLOSED = "ticket_closed"
    TICKET_REOPENED = "ticket_reopened"
    CATEGORY_CHANGED = "category_changed"
    SUBCATEGORY_CHANGED = "subcategory_changed"
    SLA_CHANGED = "sla_changed"
    TASK_ADDED = "task_added"
    TASK_COMPLETED = "task_completed"


DEFAULT_PRIORITY = TicketPriority.MEDIUM.value


@dataclass(slots=True)
class TicketRecord:
    """Read-only snapshot of a service ticket.

    Timestamp fields keep whatever shape the store produced; use
    :func:`normalize_timestamp` before doing arithmetic on them.
    """

    id: str
    status: str
    created_at: Any = None
    updated_at: Any = None
    sla_deadline: Any = None
    company_id: str | None = None
    category: str | None = None
    priority: str = DEFAULT_PRIORITY
    title: str = ""

    @property
    def is_resolved(self) -> bool:
        return self.status == TicketStatus.RESOLVED.value

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "TicketRecord":
        return cls(
            id=str(document.get("id", "")),
            status=str(document.get("status") or TicketStatus.OPEN.value),
            created_at=document.get("createdAt"),
            updated_at=document.get("updatedAt"),
            sla_deadline=document.get("slaDeadline"),
            company_id=document.get("companyId") or None,
            category=document.get("category") or None,
            priority=str(document.get("priority") or DEFAULT_PRIORITY),
            title=str(document.get("title") or ""),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "company_id": self.company_id,
            "category": self.category,
            "priority": self.priority,
            "status": self.status,
            "created_at": _iso_or_none(self.created_at),
            "updated_at": _iso_or_none(self.updated_at),
            "sla_deadline": _iso_or_none(self.sla_deadline),
        }


@dataclass(slots=True)
class InvoiceRecord:
    """Read-only snapshot of an invoice; ``amount`` may be numeric or a numeric string."""

    id: str
    status: str
    amount: Any = 0
    customer_id: str | None = None
    issue_date: Any = None
    due_date: Any = None

    @property
    def numeric_amount(self) -> float:
        if isinstance(self.amount, bool):
            return 0.0
        if isinstance(self.amount, (int, float)):
            value = float(self.amount)
        else:
            try:
                value = float(str(self.amount).strip())
            except ValueError:
                return 0.0
        # NaN and infinities count as zero.
        if value != value or value in (float("inf"), float("-inf")):
            return 0.0
        return value

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "InvoiceRecord":
        return cls(
            id=str(document.get("id", "")),
            status=str(document.get("status") or ""),
            amount=document.get("amount", 0),
            customer_id=document.get("customerId") or None,
            issue_date=document.get("issueDate"),
            due_date=document.get("dueDate"),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "amount": self.numeric_amount,
            "status": self.status,
            "issue_date": _iso_or_none(self.issue_date),
            "due_date": _iso_or_none(self.due_date),
        }


@dataclass(slots=True)
class CustomerRecord:
    id: str
    name: str

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "CustomerRecord":
        return cls(id=str(document.get("id", "")), name=str(document.get("name") or ""))


@dataclass(slots=True)
class TimelineEntry:
    """Single event from a ticket's append-only activity timeline."""

    ticket_id: str
    type: str
    created_at: Any = None

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "TimelineEntry":
        return cls(
            ticket_id=str(document.get("ticketId", "")),
            type=str(document.get("type") or ""),
            created_at=document.get("createdAt"),
        )


@dataclass(slots=True)
class MetricsSnapshot:
    """Live dashboard figures; recomputed on demand, never persisted."""

    total_tickets: int = 0
    open_tickets: int = 0
    resolved_tickets: int = 0
    resolution_rate: float = 0.0
    avg_resolution_time_hours: float = 0.0
    active_customers: int = 0
    first_response_time_hours: float = 0.0
    sla_compliance: float = 0.0


@dataclass(slots=True)
class TrendBucket:
    period: str
    created: int = 0
    resolved: int = 0


@dataclass(slots=True)
class CategoryBucket:
    category: str
    count: int
    percentage: float


@dataclass(frozen=True, slots=True)
class ReportDocument:
    """One generated report instance handed to export/print renderers."""

    title: str
    generated_at: datetime
    data: Mapping[str, Any] = field(default_factory=dict)
    summary: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class DownloadRecord:
    """Audit entry for a report download; append-only."""

    id: str
    report_id: str
    report_name: str
    user_id: str
    parameters: Mapping[str, Any]
    downloaded_at: datetime


def _iso_or_none(value: Any) -> str | None:
    instant = normalize_timestamp(value)
    return isoformat_utc(instant) if instant is not None else None
