"""
Storage and service wiring for the web adapters.

Why:
    Routes should not decide where data lives. This module picks the Postgres
    adapters when `DATABASE_URL` is configured and the in-memory ones
    otherwise, builds them lazily (so importing the app never opens a DB
    connection), and lets tests swap implementations at runtime.
"""
from __future__ import annotations

import logging

from backend.identity_access.accounts import AccountsService, parse_allowed_registration_domains
from backend.identity_access.directory import UsersService
from backend.identity_access.stores import UserStore
from backend.identity_access.stores_db import DBUserStore
from backend.teaching.repo_db import DBTeachingRepo
from backend.teaching.repo_memory import MemoryTeachingRepo
from backend.teaching.services.assignments import AssignmentsService
from backend.teaching.services.classes import ClassesService
from backend.teaching.services.grading import SimulatedRunner, SolutionRunner

from .config import AppSettings

logger = logging.getLogger("codeclass.web.wiring")

SETTINGS = AppSettings()

_USER_STORE = None
_REPO = None
_RUNNER: SolutionRunner | None = None


def _build_default_user_store():
    dsn = SETTINGS.database_url
    if dsn:
        logger.info("User store: Postgres")
        return DBUserStore(dsn=dsn)
    logger.info("User store: in-memory (DATABASE_URL not set)")
    return UserStore()


def _build_default_repo():
    dsn = SETTINGS.database_url
    if dsn:
        logger.info("Teaching repo: Postgres")
        return DBTeachingRepo(dsn=dsn)
    logger.info("Teaching repo: in-memory (DATABASE_URL not set)")
    return MemoryTeachingRepo()


def get_user_store():
    global _USER_STORE
    if _USER_STORE is None:
        _USER_STORE = _build_default_user_store()
    return _USER_STORE


def get_repo():
    global _REPO
    if _REPO is None:
        _REPO = _build_default_repo()
    return _REPO


def set_user_store(store) -> None:
    """Allow tests to swap the user store implementation (None resets)."""
    global _USER_STORE
    _USER_STORE = store


def set_repo(repo) -> None:
    """Allow tests to swap the teaching repository implementation (None resets)."""
    global _REPO
    _REPO = repo


def set_runner(runner: SolutionRunner | None) -> None:
    """Allow tests to pin grading outcomes."""
    global _RUNNER
    _RUNNER = runner


def get_accounts_service() -> AccountsService:
    return AccountsService(
        store=get_user_store(),
        secret=SETTINGS.jwt_secret,
        token_ttl_seconds=SETTINGS.jwt_ttl_seconds,
        allowed_domains=parse_allowed_registration_domains(SETTINGS.allowed_registration_domains),
        allow_admin_signup=SETTINGS.allow_admin_signup,
    )


def get_users_service() -> UsersService:
    return UsersService(store=get_user_store(), submissions=get_repo())


def get_assignments_service() -> AssignmentsService:
    return AssignmentsService(get_repo(), runner=_RUNNER or SimulatedRunner())


def get_classes_service() -> ClassesService:
    return ClassesService(get_repo())
