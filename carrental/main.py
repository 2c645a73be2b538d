# carrental/main.py
"""
FastAPI application entry point.
Includes security middleware, global error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError
from starlette.middleware.base import BaseHTTPMiddleware
from carrental.routers import (
    bookings, customers, dashboard, drivers, employees, expenses, health, stakeholders, vehicles,
)
from carrental.database import create_tables
from carrental.config import settings
from carrental.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="Car Rental Management API",
    description="Fleet, bookings, customers, drivers, expenses and revenue reporting for a rental operator.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS ─────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to the dashboard origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional shared-key gate in front of every endpoint except health and docs.
    Set API_KEY in .env. Leave empty to disable.
    """
    open_paths = {"/api/v1/health", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.open_paths or not settings.API_KEY:
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


# ── Exception Handlers ───────────────────────────────────────────────────────
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Rejected request body on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(IntegrityError)
async def integrity_exception_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Integrity error on {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Conflicts with existing data"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(bookings.router,     prefix="/api/v1", tags=["Bookings"])
app.include_router(vehicles.router,     prefix="/api/v1", tags=["Vehicles"])
app.include_router(drivers.router,      prefix="/api/v1", tags=["Drivers"])
app.include_router(customers.router,    prefix="/api/v1", tags=["Customers"])
app.include_router(expenses.router,     prefix="/api/v1", tags=["Expenses"])
app.include_router(employees.router,    prefix="/api/v1", tags=["Employees"])
app.include_router(stakeholders.router, prefix="/api/v1", tags=["Stakeholders"])
app.include_router(dashboard.router,    prefix="/api/v1", tags=["Dashboard & Reports"])
app.include_router(health.router,       prefix="/api/v1", tags=["Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("Car rental backend starting up...")
    create_tables()
    logger.info("Database tables ready")
    logger.info(
        f"Booking row locks: {settings.BOOKING_ROW_LOCKS}, "
        f"recheck availability on edit: {settings.RECHECK_AVAILABILITY_ON_EDIT}"
    )
    logger.info(f"Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("Car rental backend shutting down...")
