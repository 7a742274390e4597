"""
Classes API

Scenarios
- Teachers/admins create classes (201, default duration, status scheduled).
- Any authenticated user lists (by schedule) and reads classes.
- Start: scheduled -> live records startedBy/startedAt; students -> 403; closed -> 409.
- Join: any role, idempotent participant list; closed -> 409; unknown -> 404.
"""
from __future__ import annotations

import uuid

import httpx
import pytest
from httpx import ASGITransport

from backend.identity_access.domain import Role
from backend.web import main, wiring
from backend.tests.utils.auth import login_as

pytestmark = pytest.mark.anyio("asyncio")


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test")


async def _create(c: httpx.AsyncClient, headers: dict, **overrides) -> dict:
    body = {
        "title": "Recursion Live",
        "description": "Walkthrough",
        "course": "CS101",
        "schedule": "2026-11-02T15:00:00Z",
        "meetingUrl": "https://meet.example.org/rec",
    }
    body.update(overrides)
    r = await c.post("/api/classes", headers=headers, json=body)
    assert r.status_code == 201, r.text
    return r.json()["class"]


@pytest.mark.anyio
async def test_create_class_defaults():
    _, teacher = login_as(Role.TEACHER)
    async with _client() as c:
        r = await c.post(
            "/api/classes",
            headers=teacher,
            json={"title": "Graphs", "schedule": "2026-11-02T16:00:00+01:00"},
        )
    assert r.status_code == 201
    body = r.json()
    assert body["message"] == "Class created successfully"
    cls = body["class"]
    assert cls["status"] == "scheduled"
    assert cls["duration"] == 60
    assert cls["schedule"] == "2026-11-02T15:00:00+00:00"
    assert cls["participants"] == []
    assert cls["startedBy"] is None and cls["meetingUrl"] is None


@pytest.mark.anyio
@pytest.mark.parametrize(
    "overrides",
    [
        {"title": ""},
        {"title": "  "},
        {"schedule": "next tuesday"},
        {"schedule": "2026-11-02T15:00:00"},
        {"duration": 0},
    ],
)
async def test_create_class_validation(overrides: dict):
    _, admin = login_as(Role.ADMIN)
    body = {"title": "Graphs", "schedule": "2026-11-02T15:00:00Z"}
    body.update(overrides)
    async with _client() as c:
        r = await c.post("/api/classes", headers=admin, json=body)
    assert r.status_code == 400
    assert r.json()["message"] == "Validation error"
    assert r.json()["errors"][0]["field"] == next(iter(overrides))


@pytest.mark.anyio
async def test_student_cannot_create_class():
    _, student = login_as(Role.STUDENT)
    async with _client() as c:
        r = await c.post("/api/classes", headers=student, json={"title": "x", "schedule": "2026-11-02T15:00:00Z"})
    assert r.status_code == 403


@pytest.mark.anyio
async def test_list_classes_ordered_by_schedule_and_get():
    _, teacher = login_as(Role.TEACHER)
    _, student = login_as(Role.STUDENT)
    async with _client() as c:
        late = await _create(c, teacher, title="Late", schedule="2026-12-01T10:00:00Z")
        early = await _create(c, teacher, title="Early", schedule="2026-11-01T10:00:00Z")
        listed = await c.get("/api/classes", headers=student)
        one = await c.get(f"/api/classes/{late['id']}", headers=student)
        missing = await c.get(f"/api/classes/{uuid.uuid4()}", headers=student)
        invalid = await c.get("/api/classes/123", headers=student)

    assert [c_["id"] for c_ in listed.json()] == [early["id"], late["id"]]
    assert one.json()["title"] == "Late"
    assert missing.status_code == 404
    assert missing.json()["message"] == "Class not found"
    assert invalid.status_code == 400
    assert invalid.json()["error"] == "invalid_class_id"


@pytest.mark.anyio
async def test_start_class_flow():
    teacher_user, teacher = login_as(Role.TEACHER)
    _, student = login_as(Role.STUDENT)
    async with _client() as c:
        cls = await _create(c, teacher)
        denied = await c.post(f"/api/classes/{cls['id']}/start", headers=student)
        started = await c.post(f"/api/classes/{cls['id']}/start", headers=teacher)
        again = await c.post(f"/api/classes/{cls['id']}/start", headers=teacher)
        missing = await c.post(f"/api/classes/{uuid.uuid4()}/start", headers=teacher)

    assert denied.status_code == 403
    assert started.status_code == 200
    body = started.json()
    assert body["message"] == "Class started successfully"
    assert body["class"]["status"] == "live"
    assert body["class"]["startedBy"] == teacher_user.id
    assert body["class"]["startedAt"]
    assert again.status_code == 200
    assert again.json()["class"]["startedAt"] == body["class"]["startedAt"]
    assert missing.status_code == 404


@pytest.mark.anyio
async def test_join_class_idempotent_and_closed():
    _, teacher = login_as(Role.TEACHER)
    student, s_headers = login_as(Role.STUDENT)
    async with _client() as c:
        cls = await _create(c, teacher)
        first = await c.post(f"/api/classes/{cls['id']}/join", headers=s_headers)
        second = await c.post(f"/api/classes/{cls['id']}/join", headers=s_headers)
        wiring.get_repo().classes[cls["id"]].status = "cancelled"
        closed_join = await c.post(f"/api/classes/{cls['id']}/join", headers=s_headers)
        closed_start = await c.post(f"/api/classes/{cls['id']}/start", headers=teacher)
        missing = await c.post(f"/api/classes/{uuid.uuid4()}/join", headers=s_headers)

    assert first.status_code == 200
    assert first.json()["message"] == "Joined class successfully"
    assert second.json()["class"]["participants"] == [student.id]
    assert closed_join.status_code == 409
    assert closed_join.json()["error"] == "class_closed"
    assert closed_start.status_code == 409
    assert missing.status_code == 404
