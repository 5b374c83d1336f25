# user_directory/routes/health.py
"""
Health check endpoints.
"""

import time

from fastapi import APIRouter, Depends

from user_directory.config import settings
from user_directory.services.user_list_service import UserListService, get_user_list_service

router = APIRouter()


@router.get("/healthz")
def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "user-directory"}


@router.get("/readyz")
def readyz(service: UserListService = Depends(get_user_list_service)):
    """
    Readiness check for the cache backend.

    The upstream API is not probed: an unreachable upstream degrades to empty
    pages rather than making the service unready.
    """
    checks = {}
    overall_ok = True

    t0 = time.time()
    if service.cache is None:
        checks["cache"] = {"ok": True, "backend": "none"}
    else:
        try:
            cache_ok = service.cache.backend.ping()
            checks["cache"] = {
                "ok": bool(cache_ok),
                "backend": type(service.cache.backend).__name__,
                "latency_ms": round((time.time() - t0) * 1000, 1),
            }
            overall_ok = overall_ok and bool(cache_ok)
        except Exception as e:
            checks["cache"] = {"ok": False, "error": f"{type(e).__name__}: {e}"}
            overall_ok = False

    checks["configuration"] = {
        "ok": True,
        "environment": settings.environment,
        "upstream": settings.users_endpoint(),
        "observers": len(service.pipeline),
    }

    return {"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()}
