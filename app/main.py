# app/main.py
"""
FastAPI application entry point.
Includes security middleware, global error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from app.routers import alerts, alert_manager, locations, telemetry, notifications, health
from app.database import create_tables
from app.config import settings
from app.utils.logger import get_logger
import time
import asyncio

logger = get_logger(__name__)

app = FastAPI(
    title="Firewatch Alert API",
    description="Fire-monitoring backend — sensor evaluation, alert lifecycle, live notifications.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (dashboard is served from a different origin) ──────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to dashboard origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key auth for the HTTP API.
    Health, docs and the WebSocket feed stay open.
    Set API_KEY in .env. Leave empty to disable auth.
    """
    async def dispatch(self, request: Request, call_next):
        open_paths = {"/api/v1/health", "/docs", "/redoc", "/openapi.json"}
        if request.url.path in open_paths or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(alert_manager.router, prefix="/api/v1", tags=["🚨 Alert Manager"])
app.include_router(alerts.router,        prefix="/api/v1", tags=["🔔 Alerts"])
app.include_router(locations.router,     prefix="/api/v1", tags=["📍 Locations"])
app.include_router(telemetry.router,     prefix="/api/v1", tags=["📡 Telemetry"])
app.include_router(health.router,        prefix="/api/v1", tags=["💚 Health"])
app.include_router(notifications.router, tags=["🔥 Live Notifications"])

_background_tasks: list[asyncio.Task] = []


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Firewatch Backend starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")

    if settings.SENSOR_POLL_INTERVAL_SECONDS > 0:
        from app.services.sensor_poller import start_sensor_polling
        _background_tasks.append(asyncio.create_task(
            start_sensor_polling(settings.SENSOR_POLL_INTERVAL_SECONDS), name="sensor-poller"))
        logger.info("📡 Sensor polling started")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Firewatch Backend shutting down...")
    for task in _background_tasks:
        task.cancel()
