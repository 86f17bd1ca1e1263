"""
Health check endpoints with database pool monitoring.
"""

import time

from fastapi import APIRouter

from scout.config import settings
from scout.db.pool import db_health_check
from scout.infrastructure.observability.logging import log_health_check

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "scout-message-tool"}


@router.get("/readyz")
async def readyz():
    """Readiness check: database pool and configuration."""
    checks = {}
    overall_ok = True

    t0 = time.time()
    db_health = await db_health_check()
    is_healthy = bool(db_health.get("healthy", False))
    latency_ms = round((time.time() - t0) * 1000, 1)

    checks["database"] = {"ok": is_healthy, "latency_ms": latency_ms}
    if "pool_stats" in db_health:
        checks["database"].update(db_health["pool_stats"])
    if not is_healthy:
        checks["database"]["error"] = db_health.get("error", "Database unhealthy")
    log_health_check("database", is_healthy, latency_ms, db_health.get("error"))
    overall_ok = overall_ok and is_healthy

    config_issues = []
    if not settings.gemini_configured():
        config_issues.append("GEMINI_API_KEY not set")

    checks["configuration"] = {
        "ok": not config_issues,
        "issues": config_issues or None,
        "environment": settings.environment,
    }
    overall_ok = overall_ok and not config_issues

    return {"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()}
