"CodeClass API"
from __future__ import annotations

import logging
import os
import sys
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from dotenv import load_dotenv
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out via CODECLASS_ENABLE_DOTENV (default true
      outside pytest).
    """
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("CODECLASS_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    load_dotenv()

# Settings are read after .env so local overrides apply.
from . import config as _cfg  # noqa: E402
from .errors import ApiError, internal_error, private_error, register_error_handlers  # noqa: E402
from .guards import authorize_request, requires_authentication  # noqa: E402
from .rate_limit import build_limiter, rate_limit_exceeded_handler  # noqa: E402
from .routes.assignments import assignments_router  # noqa: E402
from .routes.auth import auth_router  # noqa: E402
from .routes.classes import classes_router  # noqa: E402
from .routes.operations import operations_router  # noqa: E402
from .routes.users import users_router  # noqa: E402
from .wiring import SETTINGS  # noqa: E402

# Minimal production safety checks (fail-fast on insecure config)
_cfg.ensure_secure_config_on_startup()

logging.basicConfig(
    level=SETTINGS.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
access_logger = logging.getLogger("codeclass.web.access")

limiter = build_limiter(
    max_requests=SETTINGS.rate_limit_max_requests,
    window_seconds=SETTINGS.rate_limit_window_seconds,
)

app = FastAPI(title="CodeClass API", description="Coding classroom backend", version="1.0.0")
app.state.limiter = limiter
register_error_handlers(app)
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# --- Middleware (last registered runs first) ------------------------------------

@app.middleware("http")
async def auth_enforcement(request: Request, call_next):
    if not requires_authentication(request):
        return await call_next(request)
    try:
        await authorize_request(request)
    except ApiError as exc:
        return private_error(exc.status_code, exc.error, exc.message)
    return await call_next(request)


app.add_middleware(SlowAPIMiddleware)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    try:
        response = await call_next(request)
    except Exception as exc:
        response = internal_error(request, exc)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    if request.url.path.startswith("/api/"):
        # API payloads are per-user; never let shared caches store them.
        response.headers.setdefault("Cache-Control", "private, no-store")
    if SETTINGS.is_prod_like:
        response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    return response


@app.middleware("http")
async def access_log(request: Request, call_next):
    started = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        # Path only: query strings may carry user input.
        access_logger.info("%s %s %s %.1fms", request.method, request.url.path, status_code, elapsed_ms)


app.add_middleware(
    CORSMiddleware,
    allow_origins=SETTINGS.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# --- Routers --------------------------------------------------------------------

app.include_router(auth_router)
app.include_router(assignments_router)
app.include_router(classes_router)
app.include_router(users_router)
app.include_router(operations_router)


if __name__ == "__main__":  # pragma: no cover - manual start
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
