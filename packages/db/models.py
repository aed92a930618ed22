"""SQLModel table definitions for the insights data layer.

``tickets``, ``customers``, ``invoices`` and ``ticket_timeline`` are owned by the
ticketing and billing systems and only read here. ``report_downloads`` is the
single table this service writes to.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, JSON, String
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    """Return a timezone aware UTC timestamp."""

    return datetime.now(timezone.utc)


def _uuid_str() -> str:
    """Generate a random UUID string."""

    return str(uuid.uuid4())


class CustomerTable(SQLModel, table=True):
    """Customer companies served by the helpdesk."""

    __tablename__ = "customers"

    id: str = Field(primary_key=True, index=True)
    name: str = Field(sa_column=Column(String(255), nullable=False))


class TicketTable(SQLModel, table=True):
    """Service tickets as written by the ticket lifecycle subsystem."""

    __tablename__ = "tickets"

    id: str = Field(primary_key=True, index=True)
    title: str = Field(default="", sa_column=Column(String(255), nullable=False, default=""))
    company_id: str | None = Field(default=None, sa_column=Column(String(36), nullable=True, index=True))
    category: str | None = Field(default=None, sa_column=Column(String(100), nullable=True))
    priority: str = Field(default="medium", sa_column=Column(String(50), nullable=False, default="medium"))
    status: str = Field(sa_column=Column(String(50), nullable=False))
    created_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    updated_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    sla_deadline: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))


class TicketTimelineTable(SQLModel, table=True):
    """Append-only activity events per ticket."""

    __tablename__ = "ticket_timeline"
    __table_args__ = (Index("ix_ticket_timeline_ticket_created", "ticket_id", "created_at"),)

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    ticket_id: str = Field(
        sa_column=Column(String(36), ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False)
    )
    type: str = Field(sa_column=Column(String(50), nullable=False))
    created_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))


class InvoiceTable(SQLModel, table=True):
    """Invoices issued to customers."""

    __tablename__ = "invoices"

    id: str = Field(primary_key=True, index=True)
    customer_id: str | None = Field(default=None, sa_column=Column(String(36), nullable=True, index=True))
    amount: float = Field(default=0.0, sa_column=Column(Float, nullable=False, default=0.0))
    status: str = Field(sa_column=Column(String(50), nullable=False))
    issue_date: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    due_date: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))


class ReportDownloadTable(SQLModel, table=True):
    """Audit trail of report downloads; rows are inserted and never updated."""

    __tablename__ = "report_downloads"
    __table_args__ = (Index("ix_report_downloads_user_downloaded", "user_id", "downloaded_at"),)

    # Insertion order; breaks ties between downloads stamped with the same instant.
    seq: int | None = Field(default=None, primary_key=True)
    id: str = Field(default_factory=_uuid_str, sa_column=Column(String(36), nullable=False, unique=True))
    report_id: str = Field(sa_column=Column(String(50), nullable=False))
    report_name: str = Field(sa_column=Column(String(255), nullable=False))
    user_id: str = Field(sa_column=Column(String(255), nullable=False))
    parameters: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    downloaded_at: datetime = Field(
        default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False)
    )
