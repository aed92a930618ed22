from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import async_sessionmaker

from insights.analytics.errors import FetchFailure
from insights.analytics.repository import SnapshotRepository, StaticSnapshotSource
from packages.db.models import CustomerTable, InvoiceTable, TicketTable, TicketTimelineTable

T0 = datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)


async def _seed(session_factory: async_sessionmaker) -> None:
    async with session_factory() as session:
        async with session.begin():
            session.add_all(
                [
                    CustomerTable(id="acme", name="Acme Corp"),
                    TicketTable(
                        id="t-2",
                        title="Phone line down",
                        status="resolved",
                        priority="high",
                        company_id="acme",
                        category="telephony",
                        created_at=T0,
                        updated_at=T0 + timedelta(hours=3),
                        sla_deadline=T0 + timedelta(hours=4),
                    ),
                    TicketTable(id="t-1", title="Printer jam", status="open", company_id=None),
                    InvoiceTable(id="inv-1", customer_id="acme", amount=1250.0, status="paid", issue_date=T0),
                ]
            )
        async with session.begin():
            session.add_all(
                [
                    TicketTimelineTable(ticket_id="t-2", type="status_changed", created_at=T0 + timedelta(hours=1)),
                    TicketTimelineTable(ticket_id="t-2", type="created", created_at=T0),
                ]
            )


@pytest.mark.asyncio
async def test_lists_records_from_tables(session_factory: async_sessionmaker):
    await _seed(session_factory)
    repository = SnapshotRepository(session_factory)

    tickets = await repository.list_tickets()
    invoices = await repository.list_invoices()
    customers = await repository.list_customers()

    assert [ticket.id for ticket in tickets] == ["t-1", "t-2"]
    assert tickets[0].company_id is None
    assert tickets[0].created_at is None
    assert tickets[1].is_resolved
    assert invoices[0].numeric_amount == pytest.approx(1250.0)
    assert customers[0].name == "Acme Corp"


@pytest.mark.asyncio
async def test_timeline_is_ordered_by_time(session_factory: async_sessionmaker):
    await _seed(session_factory)
    repository = SnapshotRepository(session_factory)

    timeline = await repository.list_timeline("t-2")

    assert [entry.type for entry in timeline] == ["created", "status_changed"]
    assert await repository.list_timeline("t-1") == []


@pytest.mark.asyncio
async def test_driver_errors_become_fetch_failures():
    session = MagicMock()
    session.__aenter__.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))
    repository = SnapshotRepository(MagicMock(return_value=session))

    with pytest.raises(FetchFailure) as exc:
        await repository.list_invoices()

    assert exc.value.collection == "invoices"


@pytest.mark.asyncio
async def test_static_source_from_documents():
    source = StaticSnapshotSource.from_documents(
        {
            "tickets": [
                {"id": "t-1", "status": "resolved", "createdAt": "2024-03-01T08:00:00Z", "companyId": "acme"},
                {"id": "t-2", "companyId": "", "category": ""},
            ],
            "customers": [{"id": "acme", "name": "Acme Corp"}],
            "timeline": [
                {"ticketId": "t-1", "type": "assigned", "createdAt": "2024-03-01T09:00:00Z"},
                {"ticketId": "t-1", "type": "note_added", "createdAt": None},
                {"ticketId": "t-1", "type": "created", "createdAt": "2024-03-01T08:00:00Z"},
            ],
        }
    )

    tickets = await source.list_tickets()
    timeline = await source.list_timeline("t-1")

    assert tickets[1].status == "open"
    assert tickets[1].company_id is None
    assert tickets[1].priority == "medium"
    assert [entry.type for entry in timeline] == ["created", "assigned", "note_added"]
    assert await source.list_invoices() == []
