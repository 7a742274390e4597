"""
Configuration and startup security checks for CodeClass.

Why: Settings come from environment variables (optionally seeded from a local
`.env`). Values are read lazily so tests can monkeypatch the environment
without re-importing the app.

Permissions: The caller needs no special privileges. The startup guard simply
reads environment variables and raises `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

import os
from urllib.parse import urlparse

DEV_JWT_SECRET = "codeclass-dev-only-secret-do-not-use-in-prod"
MIN_PROD_SECRET_LENGTH = 32
_PLACEHOLDER_PREFIXES = ("CHANGE_ME", "DUMMY", "fallback-secret")


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


def _env_flag(name: str, default: str = "false") -> bool:
    return (os.getenv(name, default) or "").strip().lower() in ("1", "true", "yes")


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class AppSettings:
    def __init__(self) -> None:
        self._env_override: str | None = None

    @property
    def environment(self) -> str:
        if self._env_override is not None:
            return self._env_override
        return os.getenv("CODECLASS_ENV", "dev").lower()

    def override_environment(self, env: str | None) -> None:
        """Override environment for tests (e.g., "prod"), or reset with None."""
        self._env_override = env

    @property
    def is_prod_like(self) -> bool:
        return _is_prod_like(self.environment)

    @property
    def jwt_secret(self) -> str:
        secret = (os.getenv("JWT_SECRET") or "").strip()
        if secret:
            return secret
        # Startup guard refuses this fallback in prod-like environments.
        return DEV_JWT_SECRET

    @property
    def jwt_ttl_seconds(self) -> int:
        return max(60, _env_int("JWT_TTL_SECONDS", 7 * 24 * 3600))

    @property
    def database_url(self) -> str:
        return (os.getenv("DATABASE_URL") or "").strip()

    @property
    def cors_origins(self) -> list[str]:
        raw = os.getenv("CORS_ORIGIN", "http://localhost:5173")
        return [o.strip() for o in raw.split(",") if o.strip()]

    @property
    def log_level(self) -> str:
        return (os.getenv("LOG_LEVEL") or "INFO").strip().upper()

    @property
    def rate_limit_window_seconds(self) -> int:
        return max(1, _env_int("RATE_LIMIT_WINDOW_SECONDS", 15 * 60))

    @property
    def rate_limit_max_requests(self) -> int:
        return max(0, _env_int("RATE_LIMIT_MAX_REQUESTS", 100))

    @property
    def allowed_registration_domains(self) -> str:
        return os.getenv("ALLOWED_REGISTRATION_DOMAINS", "")

    @property
    def allow_admin_signup(self) -> bool:
        return _env_flag("CODECLASS_ALLOW_ADMIN_SIGNUP")


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Intent: Abort process startup when obviously insecure settings are detected
    in production/staging. Development remains permissive for convenience.

    Checks:
    - JWT_SECRET must be set, not a placeholder, and at least 32 characters.
    - DATABASE_URL must be set and must not disable TLS.
    - CORS_ORIGIN must not be the wildcard (credentials are allowed).
    - Admin self-signup must be off.
    """
    env = os.getenv("CODECLASS_ENV", "dev")
    if not _is_prod_like(env):
        return  # dev/test remain permissive

    # 1) Token signing secret
    secret = (os.getenv("JWT_SECRET", "") or "").strip()
    if not secret or secret.startswith(_PLACEHOLDER_PREFIXES):
        raise SystemExit("Refusing to start: JWT_SECRET is unset or a placeholder in production.")
    if len(secret) < MIN_PROD_SECRET_LENGTH:
        raise SystemExit(
            f"Refusing to start: JWT_SECRET must be at least {MIN_PROD_SECRET_LENGTH} characters in production."
        )

    # 2) Durable storage with TLS
    dsn = (os.getenv("DATABASE_URL", "") or "").strip()
    if not dsn:
        raise SystemExit("Refusing to start: DATABASE_URL is required in production (in-memory storage is dev-only).")
    if "sslmode=disable" in dsn:
        raise SystemExit(
            "Refusing to start: DATABASE_URL contains sslmode=disable in production. Use sslmode=require or verify TLS."
        )
    if "://" in dsn and not urlparse(dsn).hostname:
        raise SystemExit("Refusing to start: invalid DATABASE_URL value in production.")

    # 3) CORS wildcard with credentials
    origins = [o.strip() for o in (os.getenv("CORS_ORIGIN", "") or "").split(",") if o.strip()]
    if "*" in origins:
        raise SystemExit("Refusing to start: CORS_ORIGIN must list explicit origins in production (got '*').")

    # 4) Privileged self-registration
    if _env_flag("CODECLASS_ALLOW_ADMIN_SIGNUP"):
        raise SystemExit("Refusing to start: CODECLASS_ALLOW_ADMIN_SIGNUP must be false in production/staging.")
