"""Database models and utilities."""

from .models import (
    CustomerTable,
    InvoiceTable,
    ReportDownloadTable,
    TicketTable,
    TicketTimelineTable,
)

__all__ = [
    "CustomerTable",
    "InvoiceTable",
    "ReportDownloadTable",
    "TicketTable",
    "TicketTimelineTable",
]
