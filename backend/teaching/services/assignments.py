"""Assignments service layer (Clean Architecture boundary).

Why:
    Encapsulates assignment use cases (create/list/get, submit, list
    submissions) so the web adapter stays a thin translation layer and the
    validation rules can be unit tested without FastAPI.

Errors:
    - ValueError("invalid_<field>") for rejected input
    - LookupError("assignment_not_found") for unknown assignments
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, List, Optional, Protocol

from ..domain import DIFFICULTIES, Assignment, Submission
from .grading import SimulatedRunner, SolutionRunner

logger = logging.getLogger("codeclass.teaching.assignments")

DEFAULT_POINTS = 100


class AssignmentsRepoProtocol(Protocol):
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
        ...

    def list_assignments(self) -> List[Assignment]:
        ...

    def get_assignment(self, assignment_id: str) -> Optional[Assignment]:
        ...

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
        ...

    def list_submissions_for_assignment(self, assignment_id: str) -> List[Submission]:
        ...


def _required_text(value: object, code: str, *, max_length: int | None = None) -> str:
    if not isinstance(value, str):
        raise ValueError(code)
    trimmed = value.strip()
    if not trimmed:
        raise ValueError(code)
    if max_length is not None and len(trimmed) > max_length:
        raise ValueError(code)
    return trimmed


def _normalize_difficulty(value: object) -> str:
    if value not in DIFFICULTIES:
        raise ValueError("invalid_difficulty")
    return str(value)


def _normalize_points(value: object) -> int:
    if value is None:
        return DEFAULT_POINTS
    if isinstance(value, bool):
        raise ValueError("invalid_points")
    try:
        points = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValueError("invalid_points") from exc
    if points < 1:
        raise ValueError("invalid_points")
    return points


@dataclass
class AssignmentsService:
    """Use cases for coding assignments (framework-independent)."""

    repo: AssignmentsRepoProtocol
    runner: SolutionRunner = field(default_factory=SimulatedRunner)

    def create_assignment(
        self,
        *,
        title: object,
        description: object,
        difficulty: object,
        category: object,
        examples: Any = None,
        constraints: Any = None,
        test_cases: Any = None,
        points: object = None,
    ) -> Assignment:
        assignment = self.repo.create_assignment(
            title=_required_text(title, "invalid_title", max_length=200),
            description=_required_text(description, "invalid_description"),
            difficulty=_normalize_difficulty(difficulty),
            category=_required_text(category, "invalid_category", max_length=100),
            examples=examples,
            constraints=constraints,
            test_cases=test_cases,
            points=_normalize_points(points),
        )
        logger.info("Assignment created id=%s difficulty=%s", assignment.id, assignment.difficulty)
        return assignment

    def list_assignments(self, user_id: str, role: str) -> List[Assignment]:
        # All roles currently see the full catalogue.
        return self.repo.list_assignments()

    def get_assignment(self, assignment_id: str) -> Assignment:
        assignment = self.repo.get_assignment(assignment_id)
        if assignment is None:
            raise LookupError("assignment_not_found")
        return assignment

    def submit_solution(self, *, assignment_id: str, code: object, student_id: str) -> Submission:
        code_text = _required_text(code, "invalid_code")
        assignment = self.repo.get_assignment(assignment_id)
        if assignment is None:
            raise LookupError("assignment_not_found")
        outcome = self.runner.run(code_text, test_cases=assignment.test_cases)
        submission = self.repo.create_submission(
            assignment_id=assignment.id,
            student_id=student_id,
            code=code_text,
            result=outcome.as_dict(),
            score=outcome.score,
            status="passed" if outcome.passed else "failed",
        )
        # Never log submitted code.
        logger.info(
            "Submission stored id=%s assignment=%s status=%s",
            submission.id,
            assignment.id,
            submission.status,
        )
        return submission

    def list_submissions(self, assignment_id: str) -> List[Submission]:
        if self.repo.get_assignment(assignment_id) is None:
            raise LookupError("assignment_not_found")
        return self.repo.list_submissions_for_assignment(assignment_id)
