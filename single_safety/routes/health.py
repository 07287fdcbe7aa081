# single_safety/routes/health.py
from __future__ import annotations

from fastapi import APIRouter, Request
from sqlalchemy import text

from single_safety.core.db import get_engine

router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/ready")
def ready(request: Request):
    engine = get_engine()
    if engine is None or getattr(request.app.state, "sgis_client", None) is None:
        return {"status": "not_ready"}
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ready"}
