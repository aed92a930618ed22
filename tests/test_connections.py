from unittest.mock import AsyncMock, MagicMock

import pytest

from insights.services.postgres import PostgresConnectionTester, to_asyncpg_dsn, to_plain_dsn


@pytest.mark.asyncio
async def test_postgres_connection_tester(monkeypatch):
    connection_mock = AsyncMock()

    class DummyAcquire:
        async def __aenter__(self):
            return connection_mock

        async def __aexit__(self, exc_type, exc, tb):
            return False

    pool_mock = MagicMock()
    pool_mock.acquire.return_value = DummyAcquire()
    pool_mock.close = AsyncMock()
    captured: dict[str, object] = {}

    async def create_pool(**kwargs):
        captured.update(kwargs)
        return pool_mock

    monkeypatch.setattr("insights.services.postgres.asyncpg.create_pool", create_pool)

    tester = PostgresConnectionTester("postgresql+asyncpg://helpdesk@db/helpdesk")
    assert await tester.test_connection() is True
    connection_mock.execute.assert_awaited_with("SELECT 1")
    assert captured["dsn"] == "postgresql://helpdesk@db/helpdesk"
    await tester.close()
    pool_mock.close.assert_awaited()


def test_dsn_driver_conversion():
    assert to_asyncpg_dsn("postgresql://u@h/db") == "postgresql+asyncpg://u@h/db"
    assert to_asyncpg_dsn("postgresql+asyncpg://u@h/db") == "postgresql+asyncpg://u@h/db"
    assert to_plain_dsn("postgresql+asyncpg://u@h/db") == "postgresql://u@h/db"
    assert to_plain_dsn("sqlite:///x.db") == "sqlite:///x.db"
