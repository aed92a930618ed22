"""Identify the caller once per request so role checks downstream can reuse it."""

from __future__ import annotations

from typing import Awaitable, Callable, Iterable

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from insights.dependencies.auth import resolve_user_from_token

PUBLIC_PATHS = frozenset({"/ping", "/metrics", "/docs", "/openapi.json"})


def bearer_token(authorization: str | None) -> str | None:
    """Token carried by an ``Authorization`` header; other schemes are a 401."""

    if not authorization:
        return None
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid authentication credentials")
    return credentials.strip() or None


class RBACMiddleware(BaseHTTPMiddleware):
    """Store the caller on ``request.state.user``; public paths are skipped."""

    def __init__(self, app: ASGIApp, *, default_roles: Iterable[str] | None = None) -> None:
        super().__init__(app)
        self._default_roles = tuple(default_roles) if default_roles is not None else None

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.url.path not in PUBLIC_PATHS:
            try:
                token = bearer_token(request.headers.get("Authorization"))
                request.state.user = resolve_user_from_token(token, default_roles=self._default_roles)
            except HTTPException as exc:
                return JSONResponse(
                    status_code=exc.status_code,
                    content={"detail": exc.detail},
                    headers={"WWW-Authenticate": "Bearer"},
                )
        return await call_next(request)
