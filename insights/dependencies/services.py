from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from insights.analytics.service import AnalyticsService
from insights.dependencies.auth import Role, User, role_required
from insights.reports.service import ReportService

require_manager = role_required(Role.MANAGER)
require_viewer = role_required(Role.VIEWER)

ManagerUser = Annotated[User, Depends(require_manager)]
ViewerUser = Annotated[User, Depends(require_viewer)]


async def get_analytics_service(request: Request) -> AnalyticsService:
    service = getattr(request.app.state, "analytics_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Analytics service is not configured")
    return service


async def get_report_service(request: Request) -> ReportService:
    service = getattr(request.app.state, "report_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Report service is not configured")
    return service
