"""
Users directory API routes.

Chain: the `/api` auth middleware authenticates every route; listing users or students also
requires ADMIN or TEACHER. `/students` is declared before `/{user_id}` so it
is never captured as an id.

Privacy: responses never include password hashes; stats list recent
submissions without their code.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from backend.identity_access.domain import Role, parse_role, public_user

from ..errors import ApiError, json_private
from ..guards import current_user, require_role
from ..presenters import require_uuid, submission_json, users_json
from ..wiring import get_users_service

users_router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
    dependencies=[Depends(current_user)],
)

_DIRECTORY_ROLES = (Role.ADMIN, Role.TEACHER)


@users_router.get("", dependencies=[Depends(require_role(*_DIRECTORY_ROLES))])
def list_users(user: dict = Depends(current_user)):
    try:
        users = get_users_service().list_users(parse_role(user["role"]))
    except PermissionError as exc:
        raise ApiError(403, "forbidden", "Access denied. Insufficient permissions.") from exc
    return json_private(users_json(users))


@users_router.get("/students", dependencies=[Depends(require_role(*_DIRECTORY_ROLES))])
def list_students():
    return json_private(users_json(get_users_service().list_students()))


@users_router.get("/{user_id}")
def get_user(user_id: str):
    require_uuid(user_id, "user")
    try:
        found = get_users_service().get_user(user_id)
    except LookupError as exc:
        raise ApiError(404, "not_found", "User not found") from exc
    return json_private(public_user(found))


@users_router.get("/{user_id}/stats")
def get_user_stats(user_id: str):
    require_uuid(user_id, "user")
    try:
        stats = get_users_service().get_user_stats(user_id)
    except LookupError as exc:
        raise ApiError(404, "not_found", "User not found") from exc
    return json_private(
        {
            "totalSubmissions": stats.total_submissions,
            "passedSubmissions": stats.passed_submissions,
            "averageScore": stats.average_score,
            "recentSubmissions": [submission_json(s, include_code=False) for s in stats.recent_submissions],
        }
    )
