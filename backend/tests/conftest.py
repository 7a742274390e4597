"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend and give every test a fresh,
in-memory world (users, teaching repo, rate limiter) so API tests never need
a database and cannot leak state into each other.
"""
import os
import sys
from pathlib import Path

import pytest

# Tests run against in-memory storage unless a test wires a DB store itself.
os.environ.pop("DATABASE_URL", None)
os.environ.pop("TEACHING_DATABASE_URL", None)
os.environ.setdefault("JWT_SECRET", "test-only-secret-0123456789abcdef0123456789")

# Ensure `backend.*` imports resolve from the repository root
REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _fast_password_hashing(monkeypatch: pytest.MonkeyPatch):
    """bcrypt cost 12 is slow; the minimum cost keeps the same code path."""
    from backend.identity_access import passwords

    monkeypatch.setattr(passwords, "BCRYPT_ROUNDS", 4)
    yield


@pytest.fixture(autouse=True)
def _clear_env_toggles(monkeypatch: pytest.MonkeyPatch):
    """Keep env-driven behavior deterministic; tests opt in explicitly."""
    for var in (
        "CODECLASS_ENV",
        "CODECLASS_ALLOW_ADMIN_SIGNUP",
        "ALLOWED_REGISTRATION_DOMAINS",
        "JWT_TTL_SECONDS",
        "DATABASE_URL",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("JWT_SECRET", "test-only-secret-0123456789abcdef0123456789")
    yield


@pytest.fixture(autouse=True)
def _reset_storage_between_tests():
    """Fresh in-memory user store and teaching repo for every test."""
    from backend.identity_access.stores import UserStore
    from backend.teaching.repo_memory import MemoryTeachingRepo
    from backend.web import wiring

    wiring.set_user_store(UserStore())
    wiring.set_repo(MemoryTeachingRepo())
    wiring.set_runner(None)
    wiring.SETTINGS.override_environment(None)
    yield
    wiring.set_runner(None)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Rate limit counters are process-global; start every test at zero."""
    from backend.web import main

    main.limiter.reset()
    yield
