from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

import packages.db.models  # noqa: F401  registers the tables on SQLModel.metadata
from insights.analytics.models import TicketRecord
from insights.metrics import MetricsRegistry, register_default_metrics

BASE_TIME = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def registry() -> MetricsRegistry:
    registry = MetricsRegistry()
    register_default_metrics(registry)
    return registry


def make_ticket(
    ticket_id: str = "t-1",
    *,
    status: str = "open",
    created_offset_hours: float | None = 0,
    resolved_offset_hours: float | None = None,
    sla_offset_hours: float | None = None,
    company_id: str | None = "acme",
    category: str | None = "telephony",
    priority: str = "medium",
    title: str = "",
) -> TicketRecord:
    """Ticket relative to ``BASE_TIME``; ``None`` offsets leave the timestamp unset."""

    def at(offset: float | None):
        return None if offset is None else BASE_TIME + timedelta(hours=offset)

    return TicketRecord(
        id=ticket_id,
        status=status,
        created_at=at(created_offset_hours),
        updated_at=at(resolved_offset_hours),
        sla_deadline=at(sla_offset_hours),
        company_id=company_id,
        category=category,
        priority=priority,
        title=title or f"Ticket {ticket_id}",
    )
