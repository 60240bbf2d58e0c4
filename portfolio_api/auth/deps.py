from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from portfolio_api.errors import Forbidden, Unauthenticated

from .crud import CredentialService


_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class RouteAccess:
    """Declared access for one route.

    public=True skips authentication entirely (no token read, no user lookup).
    roles lists the roles allowed through authorization; empty means any
    authenticated user.
    """

    public: bool = False
    roles: Tuple[str, ...] = ()


PUBLIC = RouteAccess(public=True)
# Any signed-in user, no role restriction.
AUTHENTICATED = RouteAccess()
ADMIN_ONLY = RouteAccess(roles=("admin",))


async def authenticate(
    access: RouteAccess,
    token: Optional[str],
    credentials: CredentialService,
) -> Optional[Dict[str, Any]]:
    """First gate: resolve the bearer token to an active user, unless the route is public."""
    if access.public:
        return None
    if not token:
        raise Unauthenticated("Missing bearer token")
    return await credentials.validate_token(token)


def authorize(access: RouteAccess, user: Optional[Dict[str, Any]]) -> None:
    """Second gate: role check against the route's allow-list."""
    if not access.roles:
        return
    if user is None:
        raise Forbidden("Access denied: user not authenticated")
    if user.get("role") not in access.roles:
        raise Forbidden(f"Access denied: requires one of the roles: {', '.join(access.roles)}")


def guard(access: RouteAccess) -> Callable[..., Awaitable[Optional[Dict[str, Any]]]]:
    """FastAPI dependency running both gates for `access`.

    The resolved user (or None on public routes) is returned and also stored on
    `request.state.user`.
    """

    async def _guard(
        request: Request,
        bearer: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    ) -> Optional[Dict[str, Any]]:
        services = request.app.state.services
        token = bearer.credentials if bearer is not None else None
        user = await authenticate(access, token, services.credentials)
        authorize(access, user)
        request.state.user = user
        return user

    return _guard
