"""
Account use cases: register, login, profile.

Why:
    Keep credential handling (hashing, duplicate checks, token issuing) out of
    the FastAPI adapter so it can be tested with a plain in-memory store.

Errors:
    Raises `AccountError(code)`; the web adapter maps codes to HTTP statuses:
    `email_taken` (409), `invalid_credentials` (401), `invalid_email_domain`
    (400), `role_not_allowed` (403), `user_not_found` (404).
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Optional

from .domain import Role, User
from .passwords import hash_password, verify_password
from .stores import EmailTakenError, UserStoreProtocol
from .tokens import DEFAULT_TTL_SECONDS, issue_access_token

logger = logging.getLogger("codeclass.identity_access")


class AccountError(Exception):
    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


def parse_allowed_registration_domains(raw: str | None) -> set[str]:
    """Parse a comma-separated list like "@school.org, @example.org".

    Entries are trimmed and lowercased; empty entries are ignored so a
    trailing comma is harmless.
    """
    if not raw:
        return set()
    items = [part.strip().lower() for part in str(raw).split(",")]
    return {item if item.startswith("@") else f"@{item}" for item in items if item}


def is_allowed_registration_email(email: str, allowed_domains: set[str]) -> bool:
    """An empty allow-list means no restriction."""
    if not allowed_domains:
        return True
    normalized = (email or "").strip().lower()
    if "@" not in normalized:
        return False
    local, domain = normalized.rsplit("@", 1)
    if not local or not domain:
        return False
    return f"@{domain}" in allowed_domains


@dataclass
class AuthResult:
    user: User
    access_token: str


@dataclass
class AccountsService:
    """Framework-independent account use cases."""

    store: UserStoreProtocol
    secret: str
    token_ttl_seconds: int = DEFAULT_TTL_SECONDS
    allowed_domains: set[str] = field(default_factory=set)
    allow_admin_signup: bool = False

    def register(self, *, name: str, email: str, password: str, role: Optional[Role] = None) -> AuthResult:
        role = role or Role.STUDENT
        email = email.strip().lower()
        if role is Role.ADMIN and not self.allow_admin_signup:
            raise AccountError("role_not_allowed")
        if not is_allowed_registration_email(email, self.allowed_domains):
            raise AccountError("invalid_email_domain")
        if self.store.get_by_email(email) is not None:
            raise AccountError("email_taken")
        try:
            user = self.store.create(
                name=name.strip(),
                email=email,
                password_hash=hash_password(password),
                role=role,
            )
        except EmailTakenError as exc:
            # Lost a race against a concurrent registration.
            raise AccountError("email_taken") from exc
        logger.info("User registered id=%s role=%s", user.id, user.role.value)
        return AuthResult(user=user, access_token=self._token_for(user))

    def login(self, *, email: str, password: str) -> AuthResult:
        user = self.store.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            # Same error for unknown email and wrong password.
            logger.info("Login failed")
            raise AccountError("invalid_credentials")
        return AuthResult(user=user, access_token=self._token_for(user))

    def get_profile(self, user_id: str) -> User:
        user = self.store.get_by_id(user_id)
        if user is None:
            raise AccountError("user_not_found")
        return user

    def _token_for(self, user: User) -> str:
        return issue_access_token(user, secret=self.secret, ttl_seconds=self.token_ttl_seconds)
