"""
Health and dependency endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from sqlalchemy import text

import core.config as config
from core.db import get_schema_revisions
from core.mcp import tool_inventory_status


router = APIRouter()


def _check_db_health(engine) -> dict:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        current_rev, head_rev = get_schema_revisions(engine)
    except Exception as exc:
        config.logger.warning("health_db_check_failed", extra={"detail": str(exc)})
        return {"ok": False, "error": str(exc)}

    schema_ok = head_rev is None or current_rev == head_rev
    return {
        "ok": schema_ok,
        "backend": engine.dialect.name,
        "schema_revision": current_rev,
        "schema_expected": head_rev,
        "schema_up_to_date": schema_ok,
    }


@router.get("/health")
def health(request: Request):
    """Health check endpoint."""
    db_health = _check_db_health(request.app.state.store.engine)
    if not db_health.get("ok"):
        raise HTTPException(status_code=503, detail={"database": db_health})

    return {
        "status": "healthy",
        "service": config.SERVICE_NAME,
        "version": config.SERVICE_VERSION,
        "database": db_health,
    }


@router.get("/health/tools")
async def health_tools(request: Request):
    """Tool inventory health check."""
    tool_inventory = await tool_inventory_status(request.app.state.mcp)
    if tool_inventory.get("tool_count", 0) == 0:
        raise HTTPException(status_code=503, detail={"tool_inventory": tool_inventory})

    return {
        "status": "healthy",
        "service": config.SERVICE_NAME,
        "tool_inventory": tool_inventory,
    }
