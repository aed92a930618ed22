from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict

from insights.analytics.errors import InsightsError
from insights.analytics.service import AnalyticsService
from insights.analytics.trends import TrendGranularity
from insights.api.errors import to_http_exception
from insights.dependencies.services import ViewerUser, get_analytics_service

router = APIRouter(prefix="/analytics", tags=["analytics"])


class MetricsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_tickets: int
    open_tickets: int
    resolved_tickets: int
    resolution_rate: float
    avg_resolution_time_hours: float
    active_customers: int
    first_response_time_hours: float
    sla_compliance: float


class TrendResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    period: str
    created: int
    resolved: int


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category: str
    count: int
    percentage: float


AnalyticsServiceDep = Annotated[AnalyticsService, Depends(get_analytics_service)]


@router.get("/metrics", response_model=MetricsResponse)
async def get_metrics(service: AnalyticsServiceDep, _: ViewerUser) -> MetricsResponse:
    try:
        snapshot = await service.get_metrics()
    except InsightsError as exc:
        raise to_http_exception(exc) from exc
    return MetricsResponse.model_validate(snapshot)


@router.get("/trends", response_model=list[TrendResponse])
async def get_trends(
    service: AnalyticsServiceDep,
    _: ViewerUser,
    granularity: TrendGranularity = Query(default=TrendGranularity.MONTH),
    count: int = Query(default=6),
) -> list[TrendResponse]:
    try:
        buckets = await service.get_trends(granularity, count)
    except InsightsError as exc:
        raise to_http_exception(exc) from exc
    return [TrendResponse.model_validate(bucket) for bucket in buckets]


@router.get("/categories", response_model=list[CategoryResponse])
async def get_categories(service: AnalyticsServiceDep, _: ViewerUser) -> list[CategoryResponse]:
    try:
        buckets = await service.get_category_distribution()
    except InsightsError as exc:
        raise to_http_exception(exc) from exc
    return [CategoryResponse.model_validate(bucket) for bucket in buckets]
