from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field

from insights.analytics.errors import InsightsError
from insights.api.errors import to_http_exception
from insights.dependencies.services import ManagerUser, get_report_service
from insights.reports.catalog import ReportKind, available_reports
from insights.reports.service import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


class ReportDefinitionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: ReportKind
    name: str
    type: str
    description: str


class ReportRequest(BaseModel):
    year: int | None = None
    month: int | None = None
    customer_id: str | None = Field(default=None, min_length=1)
    start_date: date | None = None
    end_date: date | None = None


class ReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    title: str
    generated_at: datetime
    data: dict[str, Any]
    summary: dict[str, Any]


class DownloadResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    report_id: str
    report_name: str
    user_id: str
    parameters: dict[str, Any]
    downloaded_at: datetime


ReportServiceDep = Annotated[ReportService, Depends(get_report_service)]

_KNOWN_REPORTS = frozenset(kind.value for kind in ReportKind)


@router.get("", response_model=list[ReportDefinitionResponse])
async def list_reports(_: ManagerUser) -> list[ReportDefinitionResponse]:
    return [ReportDefinitionResponse.model_validate(definition) for definition in available_reports()]


@router.get("/downloads", response_model=list[DownloadResponse])
async def list_recent_downloads(
    service: ReportServiceDep,
    user: ManagerUser,
    limit: int = Query(default=10),
) -> list[DownloadResponse]:
    try:
        records = await service.recent_downloads(user.username, limit)
    except InsightsError as exc:
        raise to_http_exception(exc) from exc
    return [DownloadResponse.model_validate(record) for record in records]


@router.post("/{report_id}", response_model=ReportResponse)
async def generate_report(
    report_id: str,
    service: ReportServiceDep,
    user: ManagerUser,
    background_tasks: BackgroundTasks,
    payload: ReportRequest | None = None,
) -> ReportResponse:
    if report_id not in _KNOWN_REPORTS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown report '{report_id}'")

    parameters = payload.model_dump(mode="json", exclude_none=True) if payload is not None else {}
    try:
        document = await service.generate(report_id, parameters)
    except InsightsError as exc:
        raise to_http_exception(exc) from exc

    background_tasks.add_task(service.record_download, report_id, user.username, parameters)
    return ReportResponse.model_validate(document)
