"""
User directory use cases (list users, list students, lookup, stats).

Why:
    Teachers and admins browse accounts to manage classes; any authenticated
    user may look up a profile and its submission stats. Submissions live in
    the teaching context, so stats read them through a narrow lookup protocol
    instead of importing teaching code.

Errors:
    - PermissionError("forbidden") when a non-privileged role lists all users
    - LookupError("user_not_found") for unknown ids
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Protocol, Sequence

from .domain import Role, User
from .stores import UserStoreProtocol

RECENT_SUBMISSIONS_LIMIT = 5
_DIRECTORY_ROLES = frozenset({Role.ADMIN, Role.TEACHER})


class SubmissionsLookup(Protocol):
    def list_submissions_for_student(self, student_id: str) -> Sequence[Any]:
        """Return submissions of a student, newest first."""
        ...


@dataclass
class UserStats:
    total_submissions: int
    passed_submissions: int
    average_score: Optional[float]
    recent_submissions: List[Any] = field(default_factory=list)


@dataclass
class UsersService:
    store: UserStoreProtocol
    submissions: SubmissionsLookup

    def list_users(self, requesting_role: Role) -> List[User]:
        # Routes gate on role too; non-HTTP callers rely on this check.
        if requesting_role not in _DIRECTORY_ROLES:
            raise PermissionError("forbidden")
        return self.store.list_all()

    def list_students(self) -> List[User]:
        return [u for u in self.store.list_all() if u.role is Role.STUDENT]

    def get_user(self, user_id: str) -> User:
        user = self.store.get_by_id(user_id)
        if user is None:
            raise LookupError("user_not_found")
        return user

    def get_user_stats(self, user_id: str) -> UserStats:
        self.get_user(user_id)
        items = list(self.submissions.list_submissions_for_student(user_id) or [])
        scores = [s.score for s in items if getattr(s, "score", None) is not None]
        average = round(sum(scores) / len(scores), 1) if scores else None
        return UserStats(
            total_submissions=len(items),
            passed_submissions=sum(1 for s in items if getattr(s, "status", None) == "passed"),
            average_score=average,
            recent_submissions=items[:RECENT_SUBMISSIONS_LIMIT],
        )
