# app/main.py
"""
FastAPI application entry point.
Includes security middleware, error handlers for the fleet error taxonomy, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from app.routers import alerts, analytics, health, scope, vendors
from app.database import create_tables
from app.config import settings
from app.exceptions import FetchError, ScopeResolutionError
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="Fleet Dashboard API",
    description="Subsidiary-scoped fleet alerts and analytics.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (dashboard SPA calls the API from the browser) ─────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "PUT"],
    allow_headers=["X-User-Id", "X-API-Key", "Content-Type"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key auth between the gateway and this service.
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
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    user = request.headers.get("X-User-Id", "-")
    line = f"user={user} {request.method} {request.url.path} → {response.status_code} ({elapsed_ms:.0f}ms)"
    if elapsed_ms > settings.SLOW_REQUEST_MS:
        logger.info(f"[SLOW] {line}")
    else:
        logger.debug(line)
    return response


# ── Exception Handlers ───────────────────────────────────────────────────────
@app.exception_handler(ScopeResolutionError)
async def scope_error_handler(request: Request, exc: ScopeResolutionError):
    logger.warning(f"Scope denied on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={"detail": exc.reason},
    )


@app.exception_handler(FetchError)
async def fetch_error_handler(request: Request, exc: FetchError):
    logger.error(f"Fetch failed on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": f"{exc.entity} data unavailable", "unavailable": [exc.entity]},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(health.router,    prefix="/api/v1", tags=["Health"])
app.include_router(scope.router,     prefix="/api/v1", tags=["Scope"])
app.include_router(alerts.router,    prefix="/api/v1", tags=["Alerts"])
app.include_router(analytics.router, prefix="/api/v1", tags=["Analytics"])
app.include_router(vendors.router,   prefix="/api/v1", tags=["Vendors"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("Fleet Dashboard backend starting up...")
    create_tables()
    logger.info("Database tables ready")
    logger.info(f"Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")


@app.on_event("shutdown")
async def shutdown():
    logger.info("Fleet Dashboard backend shutting down...")
