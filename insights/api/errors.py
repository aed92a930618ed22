from __future__ import annotations

from fastapi import HTTPException, status

from insights.analytics.errors import ComputationTimeoutError, FetchFailure, InsightsError, ParameterError


def to_http_exception(exc: InsightsError) -> HTTPException:
    """Map aggregation errors onto HTTP status codes."""

    if isinstance(exc, ParameterError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    if isinstance(exc, FetchFailure):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Data source unavailable: {exc.collection}",
        )
    if isinstance(exc, ComputationTimeoutError):
        return HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Computation failed")
