from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from insights.metrics import PrometheusExporter, metrics_registry

router = APIRouter(tags=["observability"])


@router.get("/metrics", response_class=PlainTextResponse, summary="Prometheus text exposition")
async def export_metrics(request: Request) -> PlainTextResponse:
    registry = getattr(request.app.state, "metrics_registry", None)
    if registry is None:
        registry = metrics_registry
    payload = PrometheusExporter(registry).build_payload()
    return PlainTextResponse(payload, media_type="text/plain; version=0.0.4")
