"""API route aggregation.

All routers registered here get mounted in main.py under /api.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter, and handlers that need the identity depend on
require_identity again. FastAPI caches a dependency within one request,
so the session cookie is still resolved exactly once per request, and
never reused across requests.
"""

from fastapi import APIRouter, Depends

from tasktracker.api.auth import router as auth_router
from tasktracker.api.dashboard import router as dashboard_router
from tasktracker.api.health import router as health_router
from tasktracker.api.profile import router as profile_router
from tasktracker.api.tasks import router as tasks_router
from tasktracker.auth.dependencies import require_identity

_auth = [Depends(require_identity)]

api_router = APIRouter(prefix="/api")

# Open routes — no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
# Gated by the page loader itself (one session lookup per request)
api_router.include_router(dashboard_router, tags=["dashboard"])

# Protected routes — require a valid session cookie
api_router.include_router(tasks_router, tags=["tasks"], dependencies=_auth)
api_router.include_router(profile_router, tags=["profile"], dependencies=_auth)
