"""
Wire representations (camelCase JSON) of domain records, plus path-id checks.

Kept apart from the routes so assignments, classes and users render the same
record the same way.
"""
from __future__ import annotations

import re
from typing import Any, Iterable, Mapping, Optional

from backend.identity_access.domain import User, public_user
from backend.teaching.domain import Assignment, LiveClass, Submission

from .errors import ApiError

_UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")


def require_uuid(value: str, entity: str) -> str:
    """Return `value` or raise 400 `invalid_<entity>_id` when it is not UUID-like."""
    if not isinstance(value, str) or not _UUID_RE.match(value):
        raise ApiError(400, f"invalid_{entity}_id", f"Invalid {entity} id")
    return value


def assignment_json(a: Assignment) -> dict:
    return {
        "id": a.id,
        "title": a.title,
        "description": a.description,
        "difficulty": a.difficulty,
        "category": a.category,
        "examples": a.examples,
        "constraints": a.constraints,
        "testCases": a.test_cases,
        "points": a.points,
        "createdAt": a.created_at,
        "updatedAt": a.updated_at,
    }


def submission_json(s: Submission, *, student: Optional[User] = None, include_code: bool = True) -> dict:
    body: dict[str, Any] = {
        "id": s.id,
        "assignmentId": s.assignment_id,
        "studentId": s.student_id,
        "result": s.result,
        "score": s.score,
        "status": s.status,
        "createdAt": s.created_at,
    }
    if include_code:
        body["code"] = s.code
    if student is not None:
        body["student"] = {"id": student.id, "name": student.name, "email": student.email}
    return body


def class_json(c: LiveClass) -> dict:
    return {
        "id": c.id,
        "title": c.title,
        "description": c.description,
        "course": c.course,
        "schedule": c.schedule,
        "duration": c.duration,
        "meetingUrl": c.meeting_url,
        "status": c.status,
        "participants": list(c.participants),
        "startedBy": c.started_by,
        "startedAt": c.started_at,
        "createdAt": c.created_at,
        "updatedAt": c.updated_at,
    }


def users_json(users: Iterable[User]) -> list[dict]:
    return [public_user(u) for u in users]


def with_students(submissions: Iterable[Submission], students: Mapping[str, User]) -> list[dict]:
    return [submission_json(s, student=students.get(s.student_id)) for s in submissions]
