import asyncpg
from fastapi import APIRouter, HTTPException, Request

router = APIRouter(prefix="/ping", tags=["health"])


@router.get("", summary="Public health check")
async def ping() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/database", summary="Helpdesk database connectivity check")
async def ping_database(request: Request) -> dict[str, str]:
    tester = getattr(request.app.state, "postgres_tester", None)
    if tester is None:
        raise HTTPException(status_code=503, detail="Database check is not configured")
    try:
        await tester.test_connection()
    except (OSError, asyncpg.PostgresError) as exc:
        raise HTTPException(status_code=503, detail="Database unreachable") from exc
    return {"status": "ok", "database": "reachable"}
