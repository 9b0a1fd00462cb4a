# app/routes/health.py
"""
Health check endpoints for the record store and AI gateway.
"""

import time

from fastapi import APIRouter

from app.config import settings
from app.db.json_store import record_store
from app.services.ai_gateway_service import ai_gateway

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "nexa-crm"}


@router.get("/readyz")
def readyz():
    """
    Readiness check covering the record store and AI configuration.
    The AI gateway being unconfigured does not make the CRM unready.
    """
    checks = {}
    overall_ok = True

    # 1) Record store readable
    t0 = time.time()
    try:
        store_health = record_store.health_check()
        checks["record_store"] = {
            "ok": store_health["healthy"],
            "latency_ms": store_health.get("latency_ms", round((time.time() - t0) * 1000, 1)),
            "load_policy": store_health["load_policy"],
        }
        if store_health["healthy"]:
            checks["record_store"]["counts"] = store_health["counts"]
        else:
            checks["record_store"]["error"] = store_health.get("error", "Record store unhealthy")
        overall_ok = overall_ok and store_health["healthy"]
    except Exception as e:
        checks["record_store"] = {
            "ok": False,
            "error": f"{type(e).__name__}: {e}",
            "latency_ms": round((time.time() - t0) * 1000, 1),
        }
        overall_ok = False

    # 2) AI gateway configuration (advisory)
    ai_health = ai_gateway.health_check()
    checks["ai_gateway"] = {
        "ok": ai_health["healthy"],
        "model": ai_health["configuration"]["model"],
    }
    if not ai_health["healthy"]:
        checks["ai_gateway"]["error"] = ai_health.get("error")

    checks["configuration"] = {
        "ok": True,
        "environment": settings.environment,
        "data_dir": str(settings.data_dir()),
    }

    return {"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()}
