"""
Assignments API routes.

Chain: the `/api` auth middleware authenticates every route; writes and the submissions overview
also require TEACHER or ADMIN, and submitting a solution requires STUDENT.
Handlers translate HTTP to `AssignmentsService` calls and map its errors:
`ValueError` -> 400, `LookupError` -> 404.
"""
from __future__ import annotations

from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, field_validator

from backend.identity_access.domain import Role

from ..errors import ApiError, json_private
from ..guards import current_user, require_role
from ..presenters import assignment_json, require_uuid, submission_json, with_students
from ..wiring import get_assignments_service, get_user_store

assignments_router = APIRouter(
    prefix="/api/assignments",
    tags=["Assignments"],
    dependencies=[Depends(current_user)],
)


class AssignmentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    difficulty: Literal["Easy", "Medium", "Hard"]
    category: str = Field(..., min_length=1, max_length=100)
    examples: Any = None
    constraints: Any = None
    test_cases: Any = Field(default=None, alias="testCases")
    points: Optional[int] = Field(default=None, ge=1)

    @field_validator("title", "description", "category")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class SolutionSubmit(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    assignment_id: str = Field(..., min_length=1, alias="assignmentId")
    code: str = Field(..., min_length=1)


def _bad_request(exc: ValueError) -> ApiError:
    code = str(exc) or "bad_request"
    return ApiError(400, code, code.replace("_", " ").capitalize())


def _not_found() -> ApiError:
    return ApiError(404, "not_found", "Assignment not found")


@assignments_router.post("", dependencies=[Depends(require_role(Role.TEACHER, Role.ADMIN))])
def create_assignment(payload: AssignmentCreate):
    try:
        assignment = get_assignments_service().create_assignment(
            title=payload.title,
            description=payload.description,
            difficulty=payload.difficulty,
            category=payload.category,
            examples=payload.examples,
            constraints=payload.constraints,
            test_cases=payload.test_cases,
            points=payload.points,
        )
    except ValueError as exc:
        raise _bad_request(exc) from exc
    return json_private(
        {"message": "Assignment created successfully", "assignment": assignment_json(assignment)},
        status_code=201,
    )


@assignments_router.get("")
def list_assignments(user: dict = Depends(current_user)):
    items = get_assignments_service().list_assignments(user["id"], user["role"])
    return json_private([assignment_json(a) for a in items])


@assignments_router.post("/submit", dependencies=[Depends(require_role(Role.STUDENT))])
def submit_solution(payload: SolutionSubmit, user: dict = Depends(current_user)):
    """Grade and store a student's solution (201).

    The submitted code is stored but never logged.
    """
    require_uuid(payload.assignment_id, "assignment")
    try:
        submission = get_assignments_service().submit_solution(
            assignment_id=payload.assignment_id,
            code=payload.code,
            student_id=user["id"],
        )
    except LookupError as exc:
        raise _not_found() from exc
    except ValueError as exc:
        raise _bad_request(exc) from exc
    return json_private(
        {"message": "Solution submitted successfully", "submission": submission_json(submission)},
        status_code=201,
    )


@assignments_router.get("/{assignment_id}")
def get_assignment(assignment_id: str):
    require_uuid(assignment_id, "assignment")
    try:
        assignment = get_assignments_service().get_assignment(assignment_id)
    except LookupError as exc:
        raise _not_found() from exc
    return json_private(assignment_json(assignment))


@assignments_router.get(
    "/{assignment_id}/submissions",
    dependencies=[Depends(require_role(Role.TEACHER, Role.ADMIN))],
)
def list_submissions(assignment_id: str):
    require_uuid(assignment_id, "assignment")
    try:
        submissions = get_assignments_service().list_submissions(assignment_id)
    except LookupError as exc:
        raise _not_found() from exc
    store = get_user_store()
    students = {}
    for sid in {s.student_id for s in submissions}:
        student = store.get_by_id(sid)
        if student is not None:
            students[sid] = student
    return json_private(with_students(submissions, students))
