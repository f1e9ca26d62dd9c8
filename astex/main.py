# astex/main.py
"""
Astex Trading Platform - Backend API
====================================

- User sign-up with KYC capture, JWT login
- Deposit funding via hosted payment orders and UPI QR transfers
- Single-active UPI payment target registry
- Admin user management, trade record editing, deposit settlement
- Audit logging with correlation IDs
"""

import uuid
from datetime import datetime, timezone
from time import time

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy import text
from sqlalchemy.orm import Session

from astex import __version__
from astex.api.admin_router import router as admin_router
from astex.api.deposit_router import router as deposit_router
from astex.api.user_router import router as user_router
from astex.core.config import settings
from astex.core.errors import AppError
from astex.core.logging import configure_logging, request_id_var
from astex.db import models  # noqa: F401  (registers tables on Base.metadata)
from astex.db.session import Base, DATABASE_URL, engine, get_db

configure_logging()

app = FastAPI(
    title="Astex Trading Platform API",
    version=__version__,
)

# ============================================================================
# MIDDLEWARE CONFIGURATION
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS if settings.ENV == "production" else ["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)


# Error handling middleware
@app.middleware("http")
async def log_errors(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception as e:
        logger.bind(
            request_id=getattr(request.state, "request_id", "-"),
            path=request.url.path,
            error=str(e),
        ).error("UNHANDLED ERROR")
        raise e


# Request timing middleware
@app.middleware("http")
async def log_request_timing(request: Request, call_next):
    start = time()
    response = await call_next(request)
    duration_ms = round((time() - start) * 1000, 2)

    logger.bind(
        request_id=getattr(request.state, "request_id", "-"),
        path=request.url.path,
        duration_ms=duration_ms,
    ).info(
        f"REQUEST {request.method} {request.url.path} completed in {duration_ms}ms"
    )

    return response


# Request ID middleware (outermost, registered last)
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = request_id
    token = request_id_var.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers["X-Request-ID"] = request_id
    return response


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

def error_response(request: Request, status_code: int, message, **extra) -> JSONResponse:
    content = {
        "success": False,
        "error": message,
        "path": request.url.path,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.bind(request_id=request_id_var.get()).error(f"{type(exc).__name__}: {exc.message}")
    return error_response(request, exc.status_code, exc.message)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return error_response(request, exc.status_code, exc.detail)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "invalid"),
        }
        for err in exc.errors()
    ]
    return error_response(request, 400, "Invalid request", details=details)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.bind(request_id=request_id_var.get()).exception(f"Unexpected error: {exc}")
    return error_response(request, 500, "Internal server error")


# ============================================================================
# ROUTERS
# ============================================================================

app.include_router(user_router)
app.include_router(deposit_router)
app.include_router(admin_router)


# ============================================================================
# STARTUP & SHUTDOWN EVENTS
# ============================================================================

@app.on_event("startup")
async def startup_event():
    logger.info("=" * 80)
    logger.info(f" Astex API v{__version__} Starting...")
    logger.info(f"Environment: {settings.ENV}")
    logger.info(f"Database: {DATABASE_URL.split('@')[-1] if '@' in DATABASE_URL else DATABASE_URL}")
    logger.info("=" * 80)

    if settings.AUTO_CREATE_TABLES:
        Base.metadata.create_all(bind=engine)
        logger.info(" Tables ensured (AUTO_CREATE_TABLES)")

    logger.info(" Astex API ready")


@app.on_event("shutdown")
async def shutdown_event():
    engine.dispose()
    logger.info(" Astex API shutting down...")


# ============================================================================
# HEALTH
# ============================================================================

@app.get("/")
async def root():
    return {
        "name": "Astex Trading Platform API",
        "version": __version__,
        "status": "operational",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        db_status = "unhealthy"

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "database": db_status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
