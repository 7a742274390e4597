"""
Request guards: bearer-token authentication and role checks.

Why:
    `authenticate` runs in the `/api/*` auth middleware, before the router
    reads the body, so the chain for a request is always
    authenticate -> role check -> body validation -> handler. Routes declare
    `require_role(...)` as a dependency; the middleware reads the roles off the
    matched route and applies the same check early. Both stop the request with
    `ApiError`.

Security:
    - The token only proves identity. The role is re-read from the user store
      so demotions take effect before the token expires.
    - Failures never echo the token or the reason verification failed.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import Request
from starlette.concurrency import run_in_threadpool
from starlette.routing import Match

from backend.identity_access.domain import Role, parse_role
from backend.identity_access.tokens import AccessTokenError, decode_access_token

from .errors import ApiError
from .wiring import SETTINGS, get_user_store

logger = logging.getLogger("codeclass.web.guards")

NO_TOKEN_MESSAGE = "Access denied. No token provided."
INVALID_TOKEN_MESSAGE = "Invalid token."
NOT_AUTHENTICATED_MESSAGE = "Access denied. Not authenticated."
INSUFFICIENT_PERMISSIONS_MESSAGE = "Access denied. Insufficient permissions."

PUBLIC_API_PATHS = frozenset({"/api/auth/register", "/api/auth/login", "/api/health"})


def requires_authentication(request: Request) -> bool:
    path = request.url.path
    if request.method == "OPTIONS" or not path.startswith("/api/"):
        return False
    return path.rstrip("/") not in PUBLIC_API_PATHS


def _bearer_token(request: Request) -> str:
    header = request.headers.get("authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


async def authenticate(request: Request) -> dict:
    token = _bearer_token(request)
    if not token:
        raise ApiError(401, "unauthenticated", NO_TOKEN_MESSAGE)
    try:
        claims = decode_access_token(token, secret=SETTINGS.jwt_secret)
    except AccessTokenError as exc:
        logger.info("Rejected token reason=%s path=%s", exc.code, request.url.path)
        raise ApiError(401, "invalid_token", INVALID_TOKEN_MESSAGE) from exc

    # Store lookups may hit Postgres.
    user = await run_in_threadpool(get_user_store().get_by_id, str(claims["id"]))
    if user is None:
        raise ApiError(401, "invalid_token", INVALID_TOKEN_MESSAGE)
    principal = {"id": user.id, "email": user.email, "role": user.role.value}
    request.state.user = principal
    return principal


def _check(request: Request, allowed: frozenset[str]) -> dict:
    user = getattr(request.state, "user", None)
    if not user:
        raise ApiError(401, "unauthenticated", NOT_AUTHENTICATED_MESSAGE)
    if user.get("role") not in allowed:
        logger.info(
            "Forbidden role=%s path=%s allowed=%s",
            user.get("role"),
            request.url.path,
            ",".join(sorted(allowed)),
        )
        raise ApiError(403, "forbidden", INSUFFICIENT_PERMISSIONS_MESSAGE)
    return user


def require_role(*roles: Role | str):
    """Return a dependency admitting only authenticated users with one of `roles`."""
    allowed = frozenset(parse_role(r).value for r in roles)

    async def _check_role(request: Request) -> dict:
        return _check(request, allowed)

    _check_role.allowed_roles = allowed
    return _check_role


def route_roles(request: Request) -> Optional[frozenset[str]]:
    """Roles required by the route matching `request`, if it declares any."""
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match != Match.FULL:
            continue
        dependant = getattr(route, "dependant", None)
        if dependant is None:
            return None
        for dep in dependant.dependencies:
            allowed = getattr(dep.call, "allowed_roles", None)
            if allowed is not None:
                return allowed
        return None
    return None


async def authorize_request(request: Request) -> dict:
    """Authenticate, then apply the matched route's role requirement."""
    user = await authenticate(request)
    allowed = route_roles(request)
    if allowed is not None:
        _check(request, allowed)
    return user


async def current_user(request: Request) -> dict:
    """The principal stored by `authenticate` (handlers run after the guards)."""
    user = getattr(request.state, "user", None)
    if not user:
        raise ApiError(401, "unauthenticated", NOT_AUTHENTICATED_MESSAGE)
    return user
