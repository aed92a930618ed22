"""Report catalog, generators and the download audit ledger."""

from .catalog import REPORT_CATALOG, ReportDefinition, ReportKind, available_reports, get_report_definition
from .currency import format_currency, parse_currency
from .generator import ReportGenerator, validate_date_range, validate_month
from .ledger import DownloadLedger, LedgerWriteError
from .service import ReportService

__all__ = [
    "DownloadLedger",
    "LedgerWriteError",
    "REPORT_CATALOG",
    "ReportDefinition",
    "ReportGenerator",
    "ReportKind",
    "ReportService",
    "available_reports",
    "format_currency",
    "get_report_definition",
    "parse_currency",
    "validate_date_range",
    "validate_month",
]
