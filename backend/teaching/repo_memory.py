"""
In-memory Teaching repository (assignments, submissions, live classes).

Used for tests and local offline work; `repo_db.DBTeachingRepo` is the
Postgres-backed counterpart with the same method surface. Values handed out
are copies so callers cannot mutate stored state by accident.
"""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from .domain import Assignment, LiveClass, Submission


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class MemoryTeachingRepo:
    def __init__(self) -> None:
        self.assignments: Dict[str, Assignment] = {}
        self.submissions: Dict[str, Submission] = {}
        self.classes: Dict[str, LiveClass] = {}

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
        now = _now_iso()
        assignment = Assignment(
            id=str(uuid4()),
            title=title,
            description=description,
            difficulty=difficulty,
            category=category,
            examples=copy.deepcopy(examples),
            constraints=copy.deepcopy(constraints),
            test_cases=copy.deepcopy(test_cases),
            points=points,
            created_at=now,
            updated_at=now,
        )
        self.assignments[assignment.id] = assignment
        return copy.deepcopy(assignment)

    def list_assignments(self) -> List[Assignment]:
        items = list(self.assignments.values())
        # Newest first; insertion order breaks ties from identical timestamps.
        items = list(reversed(items))
        items.sort(key=lambda a: a.created_at, reverse=True)
        return [copy.deepcopy(a) for a in items]

    def get_assignment(self, assignment_id: str) -> Optional[Assignment]:
        a = self.assignments.get(assignment_id)
        return copy.deepcopy(a) if a else None

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
        submission = Submission(
            id=str(uuid4()),
            assignment_id=assignment_id,
            student_id=student_id,
            code=code,
            result=copy.deepcopy(result),
            score=score,
            status=status,
            created_at=_now_iso(),
        )
        self.submissions[submission.id] = submission
        return copy.deepcopy(submission)

    def _newest_first(self, items: List[Submission]) -> List[Submission]:
        items = list(reversed(items))
        items.sort(key=lambda s: s.created_at, reverse=True)
        return [copy.deepcopy(s) for s in items]

    def list_submissions_for_assignment(self, assignment_id: str) -> List[Submission]:
        return self._newest_first([s for s in self.submissions.values() if s.assignment_id == assignment_id])

    def list_submissions_for_student(self, student_id: str) -> List[Submission]:
        return self._newest_first([s for s in self.submissions.values() if s.student_id == student_id])

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
        now = _now_iso()
        live = LiveClass(
            id=str(uuid4()),
            title=title,
            description=description,
            course=course,
            schedule=schedule,
            duration=duration,
            meeting_url=meeting_url,
            status=status,
            created_at=now,
            updated_at=now,
        )
        self.classes[live.id] = live
        return copy.deepcopy(live)

    def list_classes(self) -> List[LiveClass]:
        # ISO-8601 UTC strings sort chronologically.
        items = sorted(self.classes.values(), key=lambda c: c.schedule)
        return [copy.deepcopy(c) for c in items]

    def get_class(self, class_id: str) -> Optional[LiveClass]:
        c = self.classes.get(class_id)
        return copy.deepcopy(c) if c else None

    def mark_class_live(self, class_id: str, *, started_by: str) -> Optional[LiveClass]:
        c = self.classes.get(class_id)
        if not c:
            return None
        if c.status == "scheduled":
            now = _now_iso()
            c.status = "live"
            c.started_by = started_by
            c.started_at = now
            c.updated_at = now
        return copy.deepcopy(c)

    def add_participant(self, class_id: str, user_id: str) -> Optional[LiveClass]:
        c = self.classes.get(class_id)
        if not c:
            return None
        if user_id not in c.participants:
            c.participants.append(user_id)
            c.updated_at = _now_iso()
        return copy.deepcopy(c)
