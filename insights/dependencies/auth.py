"""Caller identification for the insights API.

Bearer tokens map to fixed service accounts. Roles nest: a manager can read
everything a viewer can, an admin everything a manager can.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from insights.core.config import get_settings

logger = logging.getLogger(__name__)


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"  # generates and downloads reports
    VIEWER = "viewer"  # reads dashboard analytics


ROLE_GRANTS: dict[Role, frozenset[Role]] = {
    Role.ADMIN: frozenset(Role),
    Role.MANAGER: frozenset({Role.MANAGER, Role.VIEWER}),
    Role.VIEWER: frozenset({Role.VIEWER}),
}

ANONYMOUS_USERNAME = "anonymous"

SERVICE_ACCOUNTS: dict[str, tuple[str, Role]] = {
    "admin-token": ("helpdesk-admin", Role.ADMIN),
    "manager-token": ("service-manager", Role.MANAGER),
    "viewer-token": ("dashboard", Role.VIEWER),
}


@dataclass(frozen=True, slots=True)
class User:
    """Authenticated caller; ``username`` is the key of the download audit trail."""

    username: str
    roles: tuple[Role, ...]

    def has_role(self, role: Role) -> bool:
        return role in self.roles


def expand_roles(granted: Iterable[Role]) -> tuple[Role, ...]:
    """Every role implied by ``granted``, in declaration order."""

    implied: set[Role] = set()
    for role in granted:
        implied |= ROLE_GRANTS[role]
    return tuple(role for role in Role if role in implied)


def _roles_from_names(names: Iterable[str]) -> tuple[Role, ...]:
    roles: list[Role] = []
    for name in names:
        try:
            roles.append(Role(name.strip().lower()))
        except ValueError:
            logger.warning("Ignoring unknown default role '%s'", name)
    return expand_roles(roles)


bearer_scheme = HTTPBearer(auto_error=False)


def resolve_user_from_token(token: str | None, *, default_roles: Iterable[str] | None = None) -> User:
    """Map a bearer token to its service account.

    Requests without a token act as ``anonymous`` with ``default_roles``
    (``Settings.default_roles`` when not given). Unknown tokens are a 401.
    """

    if token is None:
        names = get_settings().default_roles if default_roles is None else default_roles
        return User(username=ANONYMOUS_USERNAME, roles=_roles_from_names(names))

    account = SERVICE_ACCOUNTS.get(token)
    if account is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid authentication credentials")

    username, role = account
    return User(username=username, roles=expand_roles((role,)))


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    request: Request,
) -> User:
    """Reuse the caller resolved by ``RBACMiddleware``, resolving it here when the middleware is absent."""

    resolved = getattr(request.state, "user", None)
    if isinstance(resolved, User):
        return resolved

    user = resolve_user_from_token(credentials.credentials if credentials is not None else None)
    request.state.user = user
    return user


def role_required(role: Role) -> Callable[[User], User]:
    """Dependency that lets the request through only when the caller holds ``role``."""

    async def dependency(user: Annotated[User, Depends(get_current_user)]) -> User:
        if not user.has_role(role):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Role '{role.value}' required")
        return user

    return dependency


CurrentUser = Annotated[User, Depends(get_current_user)]
