"""Operations endpoints (liveness for load balancers and compose healthchecks)."""

from __future__ import annotations

from fastapi import APIRouter

from ..errors import json_private

operations_router = APIRouter(tags=["Operations"])


@operations_router.get("/api/health")
async def health():
    """Public liveness probe; does not touch storage."""
    return json_private({"ok": True})
