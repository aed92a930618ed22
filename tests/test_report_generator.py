from datetime import date, datetime, timedelta, timezone

import pytest

from conftest import BASE_TIME, make_ticket
from insights.analytics.errors import ParameterError
from insights.analytics.models import CustomerRecord, InvoiceRecord
from insights.reports.currency import parse_currency
from insights.reports.generator import ReportGenerator, normalize_priority

GENERATED_AT = datetime(2024, 4, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def generator() -> ReportGenerator:
    return ReportGenerator(clock=lambda: GENERATED_AT)


def _invoice(invoice_id, status, amount, issued, customer_id="acme"):
    return InvoiceRecord(id=invoice_id, status=status, amount=amount, customer_id=customer_id, issue_date=issued)


CUSTOMERS = [CustomerRecord("acme", "Acme Corp"), CustomerRecord("globex", "Globex")]


def test_revenue_total_is_formatted_sum(generator):
    invoices = [
        _invoice("i1", "paid", 1000, "2024-03-05"),
        _invoice("i2", "pending", 500, "2024-03-06"),
    ]

    report = generator.revenue_analysis(invoices, CUSTOMERS, date(2024, 3, 1), date(2024, 3, 31))

    assert report.summary["total_revenue"] == "R 1,500.00"
    assert parse_currency(report.summary["total_revenue"]) == pytest.approx(
        parse_currency(report.summary["paid_revenue"])
        + parse_currency(report.summary["pending_revenue"])
        + parse_currency(report.summary["overdue_revenue"])
    )
    assert report.summary["overdue_revenue"] == "R 0.00"
    assert report.summary["avg_invoice_value"] == "R 750.00"
    assert report.title == "Revenue Analysis Report - 2024-03-01 to 2024-03-31"


def test_revenue_range_is_inclusive_and_groups_by_month(generator):
    invoices = [
        _invoice("before", "paid", 99, "2024-01-31T23:59:59Z"),
        _invoice("first", "paid", 100, "2024-02-01T00:00:00Z"),
        _invoice("string-amount", "overdue", "250.5", "2024-02-14", customer_id="globex"),
        _invoice("last", "paid", 300, "2024-03-31T18:00:00Z", customer_id="globex"),
        _invoice("bad-amount", "pending", "n/a", "2024-03-01"),
        _invoice("no-date", "paid", 1000, None),
    ]

    report = generator.revenue_analysis(invoices, CUSTOMERS, date(2024, 2, 1), date(2024, 3, 31))

    assert [invoice["id"] for invoice in report.data["invoices"]] == ["first", "string-amount", "last", "bad-amount"]
    assert report.data["monthly_trends"] == {
        "2024-02": {"invoice_count": 2, "revenue": 100.0},
        "2024-03": {"invoice_count": 2, "revenue": 300.0},
    }
    customers = report.data["customer_revenue"]
    assert [row["customer_id"] for row in customers] == ["globex", "acme"]
    assert customers[0] == {"customer_id": "globex", "name": "Globex", "total": 550.5, "paid": 300.0, "pending": 250.5}
    assert report.summary["overdue_invoices"] == 1


def test_revenue_rejects_inverted_range(generator):
    with pytest.raises(ParameterError):
        generator.revenue_analysis([], CUSTOMERS, date(2024, 3, 2), date(2024, 3, 1))


def test_monthly_summary_filters_to_month(generator):
    tickets = [
        make_ticket("a", status="resolved", resolved_offset_hours=6, category="cctv", priority="high"),
        make_ticket("b", status="open", category="cctv"),
        make_ticket("c", status="open", created_offset_hours=-24 * 30),
        make_ticket("d", status="open", created_offset_hours=None),
    ]

    report = generator.monthly_ticket_summary(tickets, 2024, 3)

    assert report.title == "Monthly Ticket Summary - March 2024"
    assert [ticket["id"] for ticket in report.data["tickets"]] == ["a", "b"]
    assert report.summary["total_created"] == 2
    assert report.summary["total_resolved"] == 1
    assert report.summary["resolution_rate"] == 50.0
    assert report.summary["avg_resolution_time_hours"] == 6.0
    assert report.summary["category_breakdown"] == {"cctv": 2}
    assert report.summary["priority_breakdown"] == {"high": 1, "medium": 1}


@pytest.mark.parametrize(("year", "month"), [(2024, 0), (2024, 13), (0, 5), ("2024", 1)])
def test_monthly_summary_validates_month(generator, year, month):
    with pytest.raises(ParameterError):
        generator.monthly_ticket_summary([], year, month)


def test_customer_activity_orders_busiest_first(generator):
    tickets = [
        make_ticket("a", company_id="acme"),
        make_ticket("b", company_id="globex", status="resolved", resolved_offset_hours=4),
        make_ticket("c", company_id="globex"),
        make_ticket("d", company_id="initech"),
    ]

    report = generator.customer_activity(tickets, CUSTOMERS)

    rows = report.data["customers"]
    assert [row["customer_id"] for row in rows] == ["globex", "acme", "initech"]
    assert rows[0]["resolved_tickets"] == 1
    assert rows[0]["open_tickets"] == 1
    assert rows[0]["avg_resolution_time_hours"] == 4.0
    assert rows[2]["customer_name"] == "Unknown"
    assert report.summary == {"total_customers": 3, "total_tickets": 4, "avg_tickets_per_customer": 1.3}
    assert report.title == "Customer Activity Report - All Customers"


def test_customer_activity_for_single_customer(generator):
    tickets = [make_ticket("a", company_id="acme"), make_ticket("b", company_id="globex")]

    report = generator.customer_activity(tickets, CUSTOMERS, "acme")

    assert report.title == "Customer Activity Report - Acme Corp"
    assert report.summary["total_tickets"] == 1


def test_sla_report_lists_breaches_and_reconciles_priorities(generator):
    tickets = [
        make_ticket("met", status="resolved", resolved_offset_hours=2, sla_offset_hours=4, priority="low"),
        make_ticket("late", status="resolved", resolved_offset_hours=10, sla_offset_hours=8, priority="urgent"),
        make_ticket("odd", status="resolved", resolved_offset_hours=1, sla_offset_hours=2, priority="Blocker"),
        make_ticket("open", status="open", sla_offset_hours=1, priority="critical"),
    ]

    report = generator.sla_performance(tickets)

    summary = report.summary
    assert (summary["total_tickets"], summary["compliant_tickets"], summary["breached_tickets"]) == (3, 2, 1)
    assert summary["compliance_rate"] == 66.7
    assert summary["priority_breakdown"]["critical"] == {"total": 1, "compliant": 0, "breached": 1}
    assert summary["priority_breakdown"]["blocker"] == {"total": 1, "compliant": 1, "breached": 0}
    assert summary["priority_breakdown"]["medium"] == {"total": 0, "compliant": 0, "breached": 0}
    assert report.data["breach_details"] == [
        {
            "ticket_id": "late",
            "title": "Ticket late",
            "priority": "critical",
            "sla_deadline": "2024-03-04T17:00:00.000Z",
            "resolved_at": "2024-03-04T19:00:00.000Z",
            "breach_time_hours": 2.0,
        }
    ]
    assert summary["avg_resolution_time_hours"] == round((2 + 10 + 1) / 3, 1)
    assert summary["avg_sla_time_hours"] == round((4 + 8 + 2) / 3, 1)


def test_sla_report_with_no_qualifying_tickets(generator):
    report = generator.sla_performance([make_ticket("a", status="open")])
    assert report.summary["compliance_rate"] == 0.0
    assert report.summary["avg_resolution_time_hours"] == 0.0
    assert report.data["breach_details"] == []


def test_generation_is_deterministic_apart_from_clock():
    ticks = iter([GENERATED_AT, GENERATED_AT + timedelta(minutes=5)])
    generator = ReportGenerator(clock=lambda: next(ticks))
    tickets = [make_ticket("a", status="resolved", resolved_offset_hours=3, sla_offset_hours=2)]

    first = generator.sla_performance(tickets)
    second = generator.sla_performance(tickets)

    assert first.data == second.data
    assert first.summary == second.summary
    assert first.generated_at != second.generated_at


def test_normalize_priority():
    assert normalize_priority("URGENT") == "critical"
    assert normalize_priority(None) == "medium"
    assert normalize_priority(" High ") == "high"


def test_monthly_summary_uses_reporting_timezone():
    generator = ReportGenerator(clock=lambda: GENERATED_AT, tz=timezone(timedelta(hours=2)))
    ticket = make_ticket("a", created_offset_hours=0)
    ticket.created_at = BASE_TIME.replace(month=2, day=29, hour=23)

    assert generator.monthly_ticket_summary([ticket], 2024, 3).summary["total_created"] == 1
    assert generator.monthly_ticket_summary([ticket], 2024, 2).summary["total_created"] == 0


def _monthly(generator):
    tickets = [
        make_ticket("a", status="resolved", resolved_offset_hours=2.25, category="cctv", priority="urgent"),
        make_ticket("b", status="open", category=None, priority="low"),
        make_ticket("c", status="resolved", resolved_offset_hours=7.5, category="internet", priority="critical"),
    ]
    return generator.monthly_ticket_summary(tickets, 2024, 3)


def _activity(generator):
    tickets = [
        make_ticket("a", company_id="acme", status="resolved", resolved_offset_hours=1.1),
        make_ticket("b", company_id="globex", status="resolved", resolved_offset_hours=2.2),
        make_ticket("c", company_id="globex"),
        make_ticket("d", company_id=None),
    ]
    return generator.customer_activity(tickets, CUSTOMERS)


def _revenue(generator):
    invoices = [
        _invoice("i1", "paid", 0.1, "2024-02-03"),
        _invoice("i2", "paid", 0.2, "2024-02-04"),
        _invoice("i3", "pending", "1999.99", "2024-03-10", customer_id="globex"),
        _invoice("i4", "overdue", 333.333, "2024-03-11", customer_id="globex"),
        _invoice("i5", "paid", 1234.565, "2024-03-12", customer_id="initech"),
        _invoice("i6", "paid", 10.01, "2024-02-28", customer_id="acme"),
    ]
    return generator.revenue_analysis(invoices, CUSTOMERS, date(2024, 2, 1), date(2024, 3, 31))


@pytest.mark.parametrize("build", [_monthly, _activity, _revenue], ids=["monthly", "activity", "revenue"])
def test_every_report_is_deterministic_apart_from_clock(build):
    ticks = iter([GENERATED_AT, GENERATED_AT + timedelta(minutes=5)])
    generator = ReportGenerator(clock=lambda: next(ticks))

    first = build(generator)
    second = build(generator)

    assert first.data == second.data
    assert first.summary == second.summary
    assert first.title == second.title
    assert first.generated_at != second.generated_at


def test_revenue_float_sums_are_rounded_to_cents(generator):
    report = _revenue(generator)

    acme = next(row for row in report.data["customer_revenue"] if row["customer_id"] == "acme")
    assert acme["total"] == 10.31
    assert report.data["monthly_trends"]["2024-02"] == {"invoice_count": 3, "revenue": 10.31}
    assert [row["customer_id"] for row in report.data["customer_revenue"]] == ["globex", "initech", "acme"]


def test_monthly_priority_breakdown_folds_legacy_urgent(generator):
    report = _monthly(generator)

    assert report.summary["priority_breakdown"] == {"critical": 2, "low": 1}
    assert report.data["priority_breakdown"] == {"critical": 2, "low": 1}
