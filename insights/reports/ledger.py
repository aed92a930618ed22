from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel, select

from insights.analytics.errors import FetchFailure, InsightsError, ParameterError
from insights.analytics.models import DownloadRecord
from packages.db.models import ReportDownloadTable

from .catalog import parse_report_kind


class LedgerWriteError(InsightsError):
    """Raised when a download audit record could not be persisted."""


class DownloadLedger:
    """Append-only audit log of report downloads stored in ``report_downloads``.

    Entries are only ever inserted; there is no update or delete path.
    ``downloaded_at`` is assigned here, never taken from the caller.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        engine: AsyncEngine | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._engine: AsyncEngine | None = engine
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def ensure_schema(self) -> None:
        if self._engine is None:
            raise RuntimeError("Session factory is not bound to an async engine")
        async with self._engine.begin() as connection:
            await connection.run_sync(
                SQLModel.metadata.create_all, tables=[ReportDownloadTable.__table__]
            )

    async def record(
        self,
        report_id: str,
        report_name: str,
        user_id: str,
        parameters: Mapping[str, Any] | None = None,
    ) -> DownloadRecord:
        kind = parse_report_kind(report_id)
        if not user_id:
            raise ParameterError("user_id is required to record a download")

        row = ReportDownloadTable(
            id=str(uuid.uuid4()),
            report_id=kind.value,
            report_name=report_name,
            user_id=user_id,
            parameters=dict(parameters or {}),
            downloaded_at=self._clock(),
        )
        record = self._table_to_record(row)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(row)
        except (SQLAlchemyError, OSError) as exc:
            raise LedgerWriteError(f"Failed to record download of '{kind.value}' for {user_id}") from exc
        return record

    async def recent(self, user_id: str, limit: int = 10) -> Sequence[DownloadRecord]:
        """Return the ``limit`` newest downloads of ``user_id``, newest first."""

        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ParameterError(f"limit must be a positive integer, got {limit!r}")
        statement = (
            select(ReportDownloadTable)
            .where(ReportDownloadTable.user_id == user_id)
            .order_by(ReportDownloadTable.downloaded_at.desc(), ReportDownloadTable.seq.desc())
            .limit(limit)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                rows = result.scalars().all()
        except (SQLAlchemyError, OSError) as exc:
            raise FetchFailure("report_downloads") from exc
        return [self._table_to_record(row) for row in rows]

    @staticmethod
    def _table_to_record(row: ReportDownloadTable) -> DownloadRecord:
        return DownloadRecord(
            id=row.id,
            report_id=row.report_id,
            report_name=row.report_name,
            user_id=row.user_id,
            parameters=dict(row.parameters or {}),
            downloaded_at=_ensure_datetime(row.downloaded_at),
        )


def _ensure_datetime(value: datetime | None) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    raise TypeError("Expected datetime value from database")
