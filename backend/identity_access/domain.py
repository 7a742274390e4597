"""
Identity domain constants and records.

Why:
- Centralize roles so route guards, services and persistence agree on spelling.
- Keep the user record free of web concerns; serialization lives in adapters.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    STUDENT = "STUDENT"
    TEACHER = "TEACHER"
    ADMIN = "ADMIN"


# Immutable to prevent accidental mutation.
ALLOWED_ROLES = frozenset(r.value for r in Role)


def parse_role(value: object) -> Role:
    """Return the Role for a raw value, raising ValueError("invalid_role") otherwise."""
    if isinstance(value, Role):
        return value
    if isinstance(value, str) and value.strip().upper() in ALLOWED_ROLES:
        return Role(value.strip().upper())
    raise ValueError("invalid_role")


@dataclass
class User:
    id: str
    name: str
    email: str
    role: Role
    password_hash: str
    created_at: str


def public_user(user: User) -> dict:
    """Client-facing view of a user (never includes the password hash)."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
        "createdAt": user.created_at,
    }


__all__ = ["ALLOWED_ROLES", "Role", "User", "parse_role", "public_user"]
