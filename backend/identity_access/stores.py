"""
In-memory user store for development and tests.

Why: Keep identity data behind a tiny protocol so the web layer does not care
whether users live in memory or in Postgres. For production, use
`stores_db.DBUserStore`.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol
from uuid import uuid4

from .domain import Role, User


class UserStoreProtocol(Protocol):
    def create(self, *, name: str, email: str, password_hash: str, role: Role) -> User:
        ...

    def get_by_id(self, user_id: str) -> Optional[User]:
        ...

    def get_by_email(self, email: str) -> Optional[User]:
        ...

    def list_all(self) -> List[User]:
        ...


class EmailTakenError(ValueError):
    """Raised by stores when the email is already registered."""

    def __init__(self) -> None:
        super().__init__("email_taken")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class UserStore:
    def __init__(self) -> None:
        self._data: Dict[str, User] = {}
        self._ids_by_email: Dict[str, str] = {}

    def create(self, *, name: str, email: str, password_hash: str, role: Role) -> User:
        key = email.strip().lower()
        if key in self._ids_by_email:
            raise EmailTakenError()
        user = User(
            id=str(uuid4()),
            name=name,
            email=key,
            role=role,
            password_hash=password_hash,
            created_at=_now_iso(),
        )
        self._data[user.id] = user
        self._ids_by_email[key] = user.id
        return user

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self._data.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        uid = self._ids_by_email.get((email or "").strip().lower())
        return self._data.get(uid) if uid else None

    def list_all(self) -> List[User]:
        # Insertion order is creation order; newest first like the DB store.
        return list(reversed(list(self._data.values())))

    def delete(self, user_id: str) -> None:
        user = self._data.pop(user_id, None)
        if user:
            self._ids_by_email.pop(user.email, None)
