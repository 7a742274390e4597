"""
Postgres-backed repository for Teaching (assignments, submissions, classes).

Design:
- Minimal psycopg3 usage; each call opens a short-lived connection.
- Returns the dataclasses from `teaching.domain` so services do not care which
  repository is wired.
- JSON-ish fields are stored as text (`json.dumps`) and parsed on read.
- Timestamps are rendered as ISO-8601 UTC strings in SQL for predictability
  across drivers.
"""
from __future__ import annotations

import json
import os
from typing import Any, List, Optional, Tuple

import psycopg

from .domain import Assignment, LiveClass, Submission

_ISO = "'YYYY-MM-DD\"T\"HH24:MI:SS\"+00:00\"'"

_ASSIGNMENT_COLUMNS_SQL = f"""
    id::text,
    title,
    description,
    difficulty,
    category,
    examples,
    constraints,
    test_cases,
    points,
    to_char(created_at at time zone 'utc', {_ISO}),
    to_char(updated_at at time zone 'utc', {_ISO})
"""

_SUBMISSION_COLUMNS_SQL = f"""
    id::text,
    assignment_id::text,
    student_id::text,
    code,
    result,
    score,
    status,
    to_char(created_at at time zone 'utc', {_ISO})
"""

_CLASS_COLUMNS_SQL = f"""
    c.id::text,
    c.title,
    c.description,
    c.course,
    to_char(c.schedule at time zone 'utc', {_ISO}),
    c.duration,
    c.meeting_url,
    c.status,
    to_char(c.created_at at time zone 'utc', {_ISO}),
    to_char(c.updated_at at time zone 'utc', {_ISO}),
    coalesce(
      (select array_agg(p.user_id::text order by p.joined_at)
         from public.class_participants p where p.class_id = c.id),
      '{{}}'::text[]
    ),
    c.started_by::text,
    case when c.started_at is null then null
         else to_char(c.started_at at time zone 'utc', {_ISO}) end
"""


def _dsn() -> str:
    dsn = os.getenv("TEACHING_DATABASE_URL") or os.getenv("DATABASE_URL")
    if not dsn:
        raise RuntimeError("Database DSN unavailable for DBTeachingRepo")
    return dsn


def _dump_json(value: Any) -> Optional[str]:
    return None if value is None else json.dumps(value)


def _load_json(raw: Any) -> Any:
    if raw is None:
        return None
    if isinstance(raw, (dict, list)):
        return raw
    return json.loads(raw)


def _assignment_from_row(row: Tuple) -> Assignment:
    return Assignment(
        id=row[0],
        title=row[1],
        description=row[2],
        difficulty=row[3],
        category=row[4],
        examples=_load_json(row[5]),
        constraints=_load_json(row[6]),
        test_cases=_load_json(row[7]),
        points=int(row[8]) if row[8] is not None else 100,
        created_at=row[9],
        updated_at=row[10],
    )


def _submission_from_row(row: Tuple) -> Submission:
    return Submission(
        id=row[0],
        assignment_id=row[1],
        student_id=row[2],
        code=row[3],
        result=_load_json(row[4]),
        score=int(row[5]) if row[5] is not None else None,
        status=row[6],
        created_at=row[7],
    )


def _class_from_row(row: Tuple) -> LiveClass:
    return LiveClass(
        id=row[0],
        title=row[1],
        description=row[2],
        course=row[3],
        schedule=row[4],
        duration=int(row[5]) if row[5] is not None else 60,
        meeting_url=row[6],
        status=row[7],
        created_at=row[8],
        updated_at=row[9],
        participants=list(row[10] or []),
        started_by=row[11],
        started_at=row[12],
    )


class DBTeachingRepo:
    def __init__(self, dsn: Optional[str] = None) -> None:
        """Create the repository; connections are opened per call, not eagerly."""
        self._dsn = dsn or _dsn()

    # --- Assignments -------------------------------------------------------------
    def create_assignment(
        self,
        *,
        title: str,
        description: str,
        difficulty: str,
        category: str,
        examples: Any,
        constraints: Any,
        test_cases: Any,
        points: int,
    ) -> Assignment:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    insert into public.assignments
                        (title, description, difficulty, category, examples, constraints, test_cases, points)
                    values (%s, %s, %s, %s, %s, %s, %s, %s)
                    returning {_ASSIGNMENT_COLUMNS_SQL}
                    """,
                    (
                        title,
                        description,
                        difficulty,
                        category,
                        _dump_json(examples),
                        _dump_json(constraints),
                        _dump_json(test_cases),
                        points,
                    ),
                )
                row = cur.fetchone()
        if not row:
            raise RuntimeError("assignment insert returned no row")
        return _assignment_from_row(row)

    def list_assignments(self) -> List[Assignment]:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"select {_ASSIGNMENT_COLUMNS_SQL} from public.assignments order by created_at desc, id"
                )
                rows = cur.fetchall()
        return [_assignment_from_row(r) for r in rows or []]

    def get_assignment(self, assignment_id: str) -> Optional[Assignment]:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"select {_ASSIGNMENT_COLUMNS_SQL} from public.assignments where id = %s::uuid",
                    (assignment_id,),
                )
                row = cur.fetchone()
        return _assignment_from_row(row) if row else None

    # --- Submissions -------------------------------------------------------------
    def create_submission(
        self,
        *,
        assignment_id: str,
        student_id: str,
        code: str,
        result: Optional[dict],
        score: Optional[int],
        status: str,
    ) -> Submission:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    insert into public.submissions (assignment_id, student_id, code, result, score, status)
                    values (%s::uuid, %s::uuid, %s, %s, %s, %s)
                    returning {_SUBMISSION_COLUMNS_SQL}
                    """,
                    (assignment_id, student_id, code, _dump_json(result), score, status),
                )
                row = cur.fetchone()
        if not row:
            raise RuntimeError("submission insert returned no row")
        return _submission_from_row(row)

    def list_submissions_for_assignment(self, assignment_id: str) -> List[Submission]:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    select {_SUBMISSION_COLUMNS_SQL} from public.submissions
                     where assignment_id = %s::uuid
                     order by created_at desc, id
                    """,
                    (assignment_id,),
                )
                rows = cur.fetchall()
        return [_submission_from_row(r) for r in rows or []]

    def list_submissions_for_student(self, student_id: str) -> List[Submission]:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    select {_SUBMISSION_COLUMNS_SQL} from public.submissions
                     where student_id = %s::uuid
                     order by created_at desc, id
                    """,
                    (student_id,),
                )
                rows = cur.fetchall()
        return [_submission_from_row(r) for r in rows or []]

    # --- Live classes ------------------------------------------------------------
    def create_class(
        self,
        *,
        title: str,
        description: Optional[str],
        course: Optional[str],
        schedule: str,
        duration: int,
        meeting_url: Optional[str],
        status: str = "scheduled",
    ) -> LiveClass:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    insert into public.live_classes (title, description, course, schedule, duration, meeting_url, status)
                    values (%s, %s, %s, %s::timestamptz, %s, %s, %s)
                    returning id::text
                    """,
                    (title, description, course, schedule, duration, meeting_url, status),
                )
                row = cur.fetchone()
                if not row:
                    raise RuntimeError("class insert returned no row")
                cur.execute(f"select {_CLASS_COLUMNS_SQL} from public.live_classes c where c.id = %s::uuid", (row[0],))
                created = cur.fetchone()
        return _class_from_row(created)

    def list_classes(self) -> List[LiveClass]:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(f"select {_CLASS_COLUMNS_SQL} from public.live_classes c order by c.schedule asc, c.id")
                rows = cur.fetchall()
        return [_class_from_row(r) for r in rows or []]

    def get_class(self, class_id: str) -> Optional[LiveClass]:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(f"select {_CLASS_COLUMNS_SQL} from public.live_classes c where c.id = %s::uuid", (class_id,))
                row = cur.fetchone()
        return _class_from_row(row) if row else None

    def mark_class_live(self, class_id: str, *, started_by: str) -> Optional[LiveClass]:
        """Move a scheduled class to live and return the class as stored afterwards.

        Only `scheduled` rows change, so a concurrent start keeps the first
        starter and a class closed in the meantime stays closed.
        """
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    update public.live_classes
                       set status = 'live', started_by = %s::uuid, started_at = now(), updated_at = now()
                     where id = %s::uuid and status = 'scheduled'
                    """,
                    (started_by, class_id),
                )
                cur.execute(f"select {_CLASS_COLUMNS_SQL} from public.live_classes c where c.id = %s::uuid", (class_id,))
                row = cur.fetchone()
        return _class_from_row(row) if row else None

    def add_participant(self, class_id: str, user_id: str) -> Optional[LiveClass]:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute("select 1 from public.live_classes where id = %s::uuid", (class_id,))
                if not cur.fetchone():
                    return None
                cur.execute(
                    """
                    insert into public.class_participants (class_id, user_id)
                    values (%s::uuid, %s::uuid)
                    on conflict (class_id, user_id) do nothing
                    """,
                    (class_id, user_id),
                )
                cur.execute(f"select {_CLASS_COLUMNS_SQL} from public.live_classes c where c.id = %s::uuid", (class_id,))
                row = cur.fetchone()
        return _class_from_row(row) if row else None
