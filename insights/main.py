from contextlib import asynccontextmanager

from dateutil import tz as dateutil_tz
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from insights.analytics.repository import SnapshotRepository
from insights.analytics.service import AnalyticsService
from insights.api.routes import analytics, metrics, ping, reports
from insights.core.config import Settings, get_settings
from insights.core.logging import configure_logging, init_tracer, shutdown_tracer
from insights.metrics import metrics_registry
from insights.middleware import RBACMiddleware
from insights.reports.generator import ReportGenerator
from insights.reports.ledger import DownloadLedger
from insights.reports.service import ReportService
from insights.services.postgres import PostgresConnectionTester, to_asyncpg_dsn


def resolve_timezone(name: str):
    """Return the tzinfo for ``name`` (e.g. ``"Africa/Johannesburg"``)."""

    zone = dateutil_tz.UTC if name.upper() == "UTC" else dateutil_tz.gettz(name)
    if zone is None:
        raise ValueError(f"Unknown reporting timezone: {name!r}")
    return zone


def build_services(
    settings: Settings, session_factory, ledger: DownloadLedger
) -> tuple[AnalyticsService, ReportService]:
    reporting_tz = resolve_timezone(settings.reporting_timezone)
    source = SnapshotRepository(session_factory)
    analytics_service = AnalyticsService(
        source,
        timeout_seconds=settings.computation_timeout_seconds,
        timeline_concurrency=settings.timeline_fetch_concurrency,
        tz=reporting_tz,
        metrics=metrics_registry,
    )
    report_service = ReportService(
        source,
        ledger,
        generator=ReportGenerator(tz=reporting_tz, currency_symbol=settings.currency_symbol),
        timeout_seconds=settings.computation_timeout_seconds,
        metrics=metrics_registry,
    )
    return analytics_service, report_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)

    app.state.logger = logger
    app.state.tracer_provider = tracer_provider
    app.state.metrics_registry = metrics_registry
    postgres_tester = PostgresConnectionTester(dsn=settings.postgres_dsn)
    app.state.postgres_tester = postgres_tester

    db_engine = create_async_engine(to_asyncpg_dsn(settings.postgres_dsn), future=True)
    session_factory = async_sessionmaker(db_engine, expire_on_commit=False)
    ledger = DownloadLedger(session_factory, engine=db_engine)
    await ledger.ensure_schema()
    analytics_service, report_service = build_services(settings, session_factory, ledger)
    app.state.analytics_service = analytics_service
    app.state.report_service = report_service
    app.state.db_engine = db_engine
    logger.info("Aggregation services ready (timezone=%s)", settings.reporting_timezone)
    try:
        yield
    finally:
        await db_engine.dispose()
        await postgres_tester.close()
        shutdown_tracer(tracer_provider)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.add_middleware(RBACMiddleware, default_roles=settings.default_roles)
    app.include_router(ping.router)
    app.include_router(analytics.router)
    app.include_router(reports.router)
    app.include_router(metrics.router)
    return app


app = create_app()
