"""
Auth API routes: register, login, current profile.

Security:
- Register and login are public; `/api/auth/me` runs the bearer-token guard.
- Responses are `private, no-store`; passwords and hashes never appear in
  responses or logs.
"""
from __future__ import annotations

import re
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator

from backend.identity_access.accounts import AccountError
from backend.identity_access.domain import Role, parse_role, public_user

from ..errors import ApiError, json_private
from ..guards import current_user
from ..wiring import get_accounts_service

auth_router = APIRouter(prefix="/api/auth", tags=["Auth"])

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

_ACCOUNT_ERRORS = {
    "email_taken": (409, "User already exists with this email"),
    "invalid_credentials": (401, "Invalid credentials"),
    "invalid_email_domain": (400, "Email domain is not allowed for registration"),
    "role_not_allowed": (403, "Self-registration with this role is not allowed"),
    "user_not_found": (404, "User not found"),
}


def _account_error(exc: AccountError) -> ApiError:
    status, message = _ACCOUNT_ERRORS.get(exc.code, (400, exc.code))
    return ApiError(status, exc.code, message)


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., max_length=254)
    password: str = Field(..., min_length=6, max_length=128)
    role: Optional[Role] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("name must contain at least 2 characters")
        return v

    @field_validator("email")
    @classmethod
    def _check_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not _EMAIL_RE.match(v):
            raise ValueError("invalid email address")
        return v

    @field_validator("role", mode="before")
    @classmethod
    def _parse_role(cls, v):
        if v is None:
            return None
        return parse_role(v)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=254)
    password: str = Field(..., min_length=1, max_length=128)


@auth_router.post("/register")
def register(payload: RegisterRequest):
    """Create an account and return it with an access token (201)."""
    try:
        result = get_accounts_service().register(
            name=payload.name,
            email=payload.email,
            password=payload.password,
            role=payload.role,
        )
    except AccountError as exc:
        raise _account_error(exc) from exc
    return json_private(
        {
            "message": "User registered successfully",
            "user": public_user(result.user),
            "accessToken": result.access_token,
        },
        status_code=201,
    )


@auth_router.post("/login")
def login(payload: LoginRequest):
    try:
        result = get_accounts_service().login(email=payload.email, password=payload.password)
    except AccountError as exc:
        raise _account_error(exc) from exc
    return json_private(
        {
            "message": "Login successful",
            "user": public_user(result.user),
            "accessToken": result.access_token,
        }
    )


@auth_router.get("/me")
def me(user: dict = Depends(current_user)):
    try:
        profile = get_accounts_service().get_profile(user["id"])
    except AccountError as exc:
        raise _account_error(exc) from exc
    return json_private({"user": public_user(profile)})
