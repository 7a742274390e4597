"""
Live classes API routes.

Chain: the `/api` auth middleware authenticates every route; creating and starting a class also
require TEACHER or ADMIN. Joining is open to any authenticated user.
Errors: `ValueError` -> 400, `LookupError` -> 404, `ClassStateError` -> 409.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator

from backend.identity_access.domain import Role
from backend.teaching.services.classes import ClassStateError

from ..errors import ApiError, json_private
from ..guards import current_user, require_role
from ..presenters import class_json, require_uuid
from ..wiring import get_classes_service

classes_router = APIRouter(
    prefix="/api/classes",
    tags=["Classes"],
    dependencies=[Depends(current_user)],
)


class ClassCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    course: Optional[str] = Field(default=None, max_length=100)
    schedule: AwareDatetime
    duration: Optional[int] = Field(default=None, gt=0)
    meeting_url: Optional[str] = Field(default=None, alias="meetingUrl", max_length=2048)

    @field_validator("title")
    @classmethod
    def _strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


def _map_errors(exc: Exception) -> ApiError:
    if isinstance(exc, ClassStateError):
        return ApiError(409, exc.code, "Class has already ended or was cancelled")
    if isinstance(exc, LookupError):
        return ApiError(404, "not_found", "Class not found")
    code = str(exc) or "bad_request"
    return ApiError(400, code, code.replace("_", " ").capitalize())


@classes_router.post("", dependencies=[Depends(require_role(Role.TEACHER, Role.ADMIN))])
def create_class(payload: ClassCreate):
    try:
        live = get_classes_service().create_class(
            title=payload.title,
            schedule=payload.schedule.isoformat(),
            description=payload.description,
            course=payload.course,
            duration=payload.duration,
            meeting_url=payload.meeting_url,
        )
    except ValueError as exc:
        raise _map_errors(exc) from exc
    return json_private({"message": "Class created successfully", "class": class_json(live)}, status_code=201)


@classes_router.get("")
def list_classes(user: dict = Depends(current_user)):
    items = get_classes_service().list_classes(user["id"], user["role"])
    return json_private([class_json(c) for c in items])


@classes_router.get("/{class_id}")
def get_class(class_id: str):
    require_uuid(class_id, "class")
    try:
        live = get_classes_service().get_class(class_id)
    except LookupError as exc:
        raise _map_errors(exc) from exc
    return json_private(class_json(live))


@classes_router.post("/{class_id}/start", dependencies=[Depends(require_role(Role.TEACHER, Role.ADMIN))])
def start_class(class_id: str, user: dict = Depends(current_user)):
    require_uuid(class_id, "class")
    try:
        live = get_classes_service().start_class(class_id, user["id"])
    except (LookupError, ClassStateError) as exc:
        raise _map_errors(exc) from exc
    return json_private({"message": "Class started successfully", "class": class_json(live)})


@classes_router.post("/{class_id}/join")
def join_class(class_id: str, user: dict = Depends(current_user)):
    require_uuid(class_id, "class")
    try:
        live = get_classes_service().join_class(class_id, user["id"])
    except (LookupError, ClassStateError) as exc:
        raise _map_errors(exc) from exc
    return json_private({"message": "Joined class successfully", "class": class_json(live)})
