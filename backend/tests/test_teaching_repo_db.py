"""
DBTeachingRepo against a fake psycopg module (no live database).

Scenarios
- Assignments and submissions round-trip; JSON fields travel as text.
- Submissions are listed per assignment and per student, newest first.
- create_class inserts, then re-reads the row with its participants.
- mark_class_live only moves scheduled classes; the first starter wins and a
  class closed after the service read stays closed.
- add_participant is idempotent through `on conflict do nothing`.
"""
from __future__ import annotations

import uuid

import pytest

from backend.teaching import repo_db
from backend.teaching.services.classes import ClassesService, ClassStateError
from backend.tests.utils.fake_psycopg import install_fake_teaching_psycopg

DSN = "postgresql://codeclass_app:pw@localhost:5432/codeclass"


@pytest.fixture
def db(monkeypatch: pytest.MonkeyPatch):
    tables, statements = install_fake_teaching_psycopg(monkeypatch, repo_db)
    return repo_db.DBTeachingRepo(dsn=DSN), tables, statements


def _new_class(repo: repo_db.DBTeachingRepo, **overrides):
    fields = {
        "title": "Recursion Live",
        "description": None,
        "course": "CS101",
        "schedule": "2026-11-02T15:00:00+00:00",
        "duration": 60,
        "meeting_url": None,
    }
    fields.update(overrides)
    return repo.create_class(**fields)


def test_requires_dsn(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("TEACHING_DATABASE_URL", raising=False)
    with pytest.raises(RuntimeError):
        repo_db.DBTeachingRepo()


def test_assignment_roundtrip_stores_json_as_text(db):
    repo, tables, _ = db
    created = repo.create_assignment(
        title="Two Sum",
        description="Find two numbers.",
        difficulty="Easy",
        category="Arrays",
        examples=[{"input": "[2,7], 9", "output": "[0,1]"}],
        constraints=None,
        test_cases=[{"input": [[2, 7], 9], "expected": [0, 1]}],
        points=100,
    )
    stored = tables.assignments[created.id]
    assert stored["test_cases"] == '[{"input": [[2, 7], 9], "expected": [0, 1]}]'
    assert stored["constraints"] is None

    fetched = repo.get_assignment(created.id)
    assert fetched.test_cases == [{"input": [[2, 7], 9], "expected": [0, 1]}]
    assert fetched.examples[0]["output"] == "[0,1]"
    assert repo.get_assignment(str(uuid.uuid4())) is None

    later = repo.create_assignment(
        title="Graphs", description="BFS", difficulty="Hard", category="Graphs",
        examples=None, constraints=None, test_cases=None, points=250,
    )
    assert [a.id for a in repo.list_assignments()] == [later.id, created.id]


def test_submissions_are_listed_per_assignment_and_student(db):
    repo, _, statements = db
    a1 = repo.create_assignment(
        title="A1", description="d", difficulty="Easy", category="c",
        examples=None, constraints=None, test_cases=None, points=100,
    )
    a2 = repo.create_assignment(
        title="A2", description="d", difficulty="Easy", category="c",
        examples=None, constraints=None, test_cases=None, points=100,
    )
    alice, bob = str(uuid.uuid4()), str(uuid.uuid4())
    first = repo.create_submission(
        assignment_id=a1.id, student_id=alice, code="x = 1",
        result={"passed": True, "score": 90}, score=90, status="passed",
    )
    second = repo.create_submission(
        assignment_id=a2.id, student_id=alice, code="x = 2", result=None, score=None, status="pending",
    )
    repo.create_submission(
        assignment_id=a1.id, student_id=bob, code="y = 1",
        result={"passed": False, "score": 10}, score=10, status="failed",
    )

    mine = repo.list_submissions_for_student(alice)
    assert [s.id for s in mine] == [second.id, first.id]
    assert mine[1].result == {"passed": True, "score": 90}
    assert mine[0].result is None and mine[0].score is None

    for_a1 = repo.list_submissions_for_assignment(a1.id)
    assert {s.student_id for s in for_a1} == {alice, bob}
    assert repo.list_submissions_for_student(str(uuid.uuid4())) == []
    assert any("where student_id = %s::uuid" in s for s in statements)


def test_create_class_inserts_then_rereads(db):
    repo, _, statements = db
    live = _new_class(repo)
    assert live.status == "scheduled"
    assert live.participants == []
    assert live.started_by is None and live.started_at is None
    assert live.schedule == "2026-11-02T15:00:00+00:00"
    assert statements[0].startswith("insert into public.live_classes")
    assert statements[1].startswith("select") and "where c.id = %s::uuid" in statements[1]


def test_list_classes_ordered_by_schedule(db):
    repo, _, _ = db
    late = _new_class(repo, title="Late", schedule="2026-12-01T10:00:00+00:00")
    early = _new_class(repo, title="Early", schedule="2026-11-01T10:00:00+00:00")
    assert [c.id for c in repo.list_classes()] == [early.id, late.id]
    assert repo.get_class(late.id).title == "Late"
    assert repo.get_class(str(uuid.uuid4())) is None


def test_mark_class_live_only_moves_scheduled_classes(db):
    repo, tables, statements = db
    live = _new_class(repo)
    first, second = str(uuid.uuid4()), str(uuid.uuid4())

    started = repo.mark_class_live(live.id, started_by=first)
    assert started.status == "live"
    assert started.started_by == first and started.started_at
    assert "and status = 'scheduled'" in statements[-2]

    again = repo.mark_class_live(live.id, started_by=second)
    assert again.started_by == first
    assert again.started_at == started.started_at

    tables.classes[live.id]["status"] = "cancelled"
    assert repo.mark_class_live(live.id, started_by=second).status == "cancelled"
    assert repo.mark_class_live(str(uuid.uuid4()), started_by=first) is None


def test_start_does_not_reopen_a_class_closed_after_the_read(db, monkeypatch: pytest.MonkeyPatch):
    repo, tables, _ = db
    live = _new_class(repo)
    stale = repo.get_class(live.id)
    tables.classes[live.id]["status"] = "completed"
    monkeypatch.setattr(repo, "get_class", lambda class_id: stale)

    with pytest.raises(ClassStateError):
        ClassesService(repo).start_class(live.id, str(uuid.uuid4()))
    assert tables.classes[live.id]["status"] == "completed"
    assert tables.classes[live.id]["started_by"] is None


def test_add_participant_is_idempotent(db):
    repo, tables, _ = db
    live = _new_class(repo)
    student = str(uuid.uuid4())

    joined = repo.add_participant(live.id, student)
    rejoined = repo.add_participant(live.id, student)
    assert joined.participants == [student]
    assert rejoined.participants == [student]
    assert tables.participants == [(live.id, student)]
    assert repo.add_participant(str(uuid.uuid4()), student) is None
