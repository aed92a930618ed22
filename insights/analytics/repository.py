from __future__ import annotations

from collections import defaultdict
from typing import Any, Iterable, Mapping, Protocol, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from packages.db.models import CustomerTable, InvoiceTable, TicketTable, TicketTimelineTable

from .errors import FetchFailure
from .models import CustomerRecord, InvoiceRecord, TicketRecord, TimelineEntry
from .timestamps import normalize_timestamp


class SnapshotSource(Protocol):
    """Read access to the collections the aggregations consume."""

    async def list_tickets(self) -> Sequence[TicketRecord]:
        ...

    async def list_invoices(self) -> Sequence[InvoiceRecord]:
        ...

    async def list_customers(self) -> Sequence[CustomerRecord]:
        ...

    async def list_timeline(self, ticket_id: str) -> Sequence[TimelineEntry]:
        ...


class SnapshotRepository:
    """Read-only access to tickets, invoices, customers and timelines in SQL storage.

    Any driver or SQL error is re-raised as :class:`FetchFailure` naming the
    collection that could not be read.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def list_tickets(self) -> Sequence[TicketRecord]:
        rows = await self._fetch_all("tickets", select(TicketTable).order_by(TicketTable.id))
        return [self._table_to_ticket(row) for row in rows]

    async def list_invoices(self) -> Sequence[InvoiceRecord]:
        rows = await self._fetch_all("invoices", select(InvoiceTable).order_by(InvoiceTable.id))
        return [self._table_to_invoice(row) for row in rows]

    async def list_customers(self) -> Sequence[CustomerRecord]:
        rows = await self._fetch_all("customers", select(CustomerTable).order_by(CustomerTable.id))
        return [CustomerRecord(id=row.id, name=row.name) for row in rows]

    async def list_timeline(self, ticket_id: str) -> Sequence[TimelineEntry]:
        statement = (
            select(TicketTimelineTable)
            .where(TicketTimelineTable.ticket_id == ticket_id)
            .order_by(TicketTimelineTable.created_at.asc())
        )
        rows = await self._fetch_all("ticket_timeline", statement)
        return [
            TimelineEntry(ticket_id=row.ticket_id, type=row.type, created_at=row.created_at) for row in rows
        ]

    async def _fetch_all(self, collection: str, statement: Any) -> list[Any]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                return list(result.scalars().all())
        except (SQLAlchemyError, OSError) as exc:
            raise FetchFailure(collection, f"Failed to fetch '{collection}': {exc}") from exc

    @staticmethod
    def _table_to_ticket(row: TicketTable) -> TicketRecord:
        return TicketRecord(
            id=row.id,
            title=row.title or "",
            status=row.status,
            priority=row.priority or "medium",
            company_id=row.company_id or None,
            category=row.category or None,
            created_at=row.created_at,
            updated_at=row.updated_at,
            sla_deadline=row.sla_deadline,
        )

    @staticmethod
    def _table_to_invoice(row: InvoiceTable) -> InvoiceRecord:
        return InvoiceRecord(
            id=row.id,
            customer_id=row.customer_id or None,
            amount=row.amount,
            status=row.status,
            issue_date=row.issue_date,
            due_date=row.due_date,
        )


class StaticSnapshotSource:
    """In-memory :class:`SnapshotSource` over already-loaded records.

    Useful for fixtures and for running reports against exported documents.
    Timelines are served in ascending time order; entries with unusable
    timestamps sort last.
    """

    def __init__(
        self,
        *,
        tickets: Iterable[TicketRecord] = (),
        invoices: Iterable[InvoiceRecord] = (),
        customers: Iterable[CustomerRecord] = (),
        timeline: Iterable[TimelineEntry] = (),
    ) -> None:
        self._tickets = list(tickets)
        self._invoices = list(invoices)
        self._customers = list(customers)
        grouped: dict[str, list[TimelineEntry]] = defaultdict(list)
        for entry in timeline:
            grouped[entry.ticket_id].append(entry)
        self._timelines = {
            ticket_id: sorted(entries, key=_timeline_sort_key) for ticket_id, entries in grouped.items()
        }

    @classmethod
    def from_documents(cls, documents: Mapping[str, Iterable[Mapping[str, Any]]]) -> "StaticSnapshotSource":
        """Build a source from store-shaped documents keyed by collection name."""

        return cls(
            tickets=[TicketRecord.from_document(doc) for doc in documents.get("tickets", ())],
            invoices=[InvoiceRecord.from_document(doc) for doc in documents.get("invoices", ())],
            customers=[CustomerRecord.from_document(doc) for doc in documents.get("customers", ())],
            timeline=[TimelineEntry.from_document(doc) for doc in documents.get("timeline", ())],
        )

    async def list_tickets(self) -> Sequence[TicketRecord]:
        return list(self._tickets)

    async def list_invoices(self) -> Sequence[InvoiceRecord]:
        return list(self._invoices)

    async def list_customers(self) -> Sequence[CustomerRecord]:
        return list(self._customers)

    async def list_timeline(self, ticket_id: str) -> Sequence[TimelineEntry]:
        return list(self._timelines.get(ticket_id, ()))


def _timeline_sort_key(entry: TimelineEntry) -> tuple[int, float]:
    instant = normalize_timestamp(entry.created_at)
    if instant is None:
        return (1, 0.0)
    return (0, instant.timestamp())
