"""
Teaching records (assignments, submissions, live classes).

Plain dataclasses shared by the in-memory and Postgres repositories. JSON-ish
fields (examples, constraints, test cases, grading results) are kept as
parsed Python values here; the DB repo serializes them to text columns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

DIFFICULTIES = ("Easy", "Medium", "Hard")
CLASS_STATUSES = ("scheduled", "live", "completed", "cancelled")
CLOSED_CLASS_STATUSES = frozenset({"completed", "cancelled"})
SUBMISSION_STATUSES = ("pending", "passed", "failed")


@dataclass
class Assignment:
    id: str
    title: str
    description: str
    difficulty: str
    category: str
    examples: Any
    constraints: Any
    test_cases: Any
    points: int
    created_at: str
    updated_at: str


@dataclass
class Submission:
    id: str
    assignment_id: str
    student_id: str
    code: str
    result: Optional[dict]
    score: Optional[int]
    status: str
    created_at: str


@dataclass
class LiveClass:
    id: str
    title: str
    description: Optional[str]
    course: Optional[str]
    schedule: str
    duration: int
    meeting_url: Optional[str]
    status: str
    created_at: str
    updated_at: str
    participants: List[str] = field(default_factory=list)
    started_by: Optional[str] = None
    started_at: Optional[str] = None
