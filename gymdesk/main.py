# gymdesk/main.py
import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from gymdesk.middleware.errors import install_error_handlers
from gymdesk.routes.dashboard import router as dashboard_router
from gymdesk.routes.health import router as health_router
from gymdesk.services.admin.logger import log_request_response
from gymdesk.utils.settings import settings

log = logging.getLogger("gymdesk.main")

app = FastAPI(
    title="GymDesk Dashboard API",
    version=settings.APP_VERSION,
    description="Role-scoped gym, branch and revenue dashboards over Supabase",
)

# -------------------------------------------------------------------
# Error handling (stable envelopes, no stack leaks)
# -------------------------------------------------------------------
install_error_handlers(app)

# -------------------------------------------------------------------
# CORS (dashboard frontend origins only)
# -------------------------------------------------------------------
if settings.CORS_MODE == "allowlist":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )


# -------------------------------------------------------------------
# Access logging (credentials masked, health checks at DEBUG)
# -------------------------------------------------------------------
@app.middleware("http")
async def request_logging(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    log_request_response(request, response, start)
    return response


# -------------------------------------------------------------------
# Routers
# -------------------------------------------------------------------
app.include_router(health_router)
app.include_router(dashboard_router)


# -------------------------------------------------------------------
# Root
# -------------------------------------------------------------------
@app.get("/")
async def root():
    return {
        "status": "GymDesk Online",
        "version": settings.APP_VERSION,
        "routes": [
            "/health",
            "/api/gym/dashboard",
            "/api/gym/revenue",
            "/api/branch/dashboard",
        ],
    }


@app.on_event("startup")
async def startup_event():
    log.info(
        "GymDesk starting (env=%s, report_tz=%s, week_start=%s)",
        settings.ENVIRONMENT,
        settings.REPORT_TZ,
        settings.DASHBOARD_WEEK_START,
    )
