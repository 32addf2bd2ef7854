"""FastAPI app for the internship LMS."""

from __future__ import annotations

import logging
import os
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from internhub.common import timekeeper
from internhub.common.errors import DomainError
from internhub.common.schemas import ErrorResponse
from internhub.core.config import get_settings
from internhub.db.session import engine
from internhub.features.catalog.endpoints import admin_router as catalog_admin_router
from internhub.features.catalog.endpoints import router as catalog_router
from internhub.features.certificates.endpoints import admin_router as certificates_admin_router
from internhub.features.certificates.endpoints import router as certificates_router
from internhub.features.dashboard.endpoints import admin_router as dashboard_admin_router
from internhub.features.dashboard.endpoints import router as dashboard_router
from internhub.features.enrollments.endpoints import router as enrollments_router
from internhub.features.notifications.endpoints import router as notifications_router
from internhub.features.payments.endpoints import admin_router as payments_admin_router
from internhub.features.payments.endpoints import router as payments_router
from internhub.features.submissions.endpoints import admin_router as submissions_admin_router
from internhub.features.submissions.endpoints import router as submissions_router
from internhub.features.users.endpoints import admin_router as users_admin_router

_settings = get_settings()
logging.basicConfig(
    level=getattr(logging, _settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("app")

app = FastAPI(title=_settings.app_name, debug=_settings.debug)
_START_TIME = datetime.now(timezone.utc)


# ------------------------
# CORS Setup
# ------------------------
_FRONTEND_ORIGINS = [o.strip().rstrip("/") for o in _settings.allow_origins.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------
# Custom Middlewares
# ------------------------
@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    incoming = request.headers.get("X-Request-Id") or request.headers.get("X-Request-ID")
    req_id = incoming or str(uuid.uuid4())
    request.state.request_id = req_id
    req_logger = logging.getLogger("request")
    req_logger.info("request.start request_id=%s method=%s path=%s", req_id, request.method, request.url.path)
    response = await call_next(request)
    response.headers["X-Request-Id"] = req_id
    req_logger.info("request.end request_id=%s path=%s status_code=%s", req_id, request.url.path, response.status_code)
    return response


@app.middleware("http")
async def timing_middleware(request: Request, call_next):
    t0 = time.perf_counter()
    resp = await call_next(request)
    dt = int((time.perf_counter() - t0) * 1000)
    resp.headers["X-Response-Time-Ms"] = str(dt)
    logging.getLogger("timing").info("%s %s %sms %s", request.method, request.url.path, dt, resp.status_code)
    return resp


# ------------------------
# Error handling
# ------------------------
@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    logger.info(
        "domain_error code=%s status=%s path=%s message=%s",
        exc.error_code, exc.status_code, request.url.path, exc.message,
    )
    body = ErrorResponse(
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details,
        timestamp=timekeeper.now(),
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


# ------------------------
# Routers
# ------------------------
app.include_router(catalog_router)
app.include_router(catalog_admin_router)
app.include_router(enrollments_router)
app.include_router(submissions_router)
app.include_router(submissions_admin_router)
app.include_router(payments_router)
app.include_router(payments_admin_router)
app.include_router(certificates_router)
app.include_router(certificates_admin_router)
app.include_router(notifications_router)
app.include_router(dashboard_router)
app.include_router(dashboard_admin_router)
app.include_router(users_admin_router)


# ------------------------
# Meta endpoints
# ------------------------
@app.get("/", tags=["meta"], summary="API Root")
async def root():
    return {
        "name": _settings.app_name,
        "status": "ok",
        "docs": "/docs",
        "health": "/healthz",
    }


@app.get("/healthz", tags=["meta"], summary="Liveness / readiness check")
def healthz() -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    db_latency_ms: float | None = None
    try:
        start = time.perf_counter()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        db_latency_ms = round((time.perf_counter() - start) * 1000, 2)
        db_status = "ok"
    except SQLAlchemyError as e:
        logger.error("healthz.db_error error=%s", e)
        db_status = f"error:{type(e).__name__}"

    return {
        "status": "ok" if db_status == "ok" else "degraded",
        "time_utc": now.isoformat(),
        "uptime_seconds": round((now - _START_TIME).total_seconds(), 2),
        "version": os.getenv("APP_VERSION", "dev"),
        "environment": "debug" if _settings.debug else "prod",
        "clock_offset_seconds": timekeeper.get_offset().total_seconds(),
        "components": {
            "database": (
                {"status": db_status, "latency_ms": db_latency_ms}
                if db_status == "ok"
                else {"status": db_status}
            ),
        },
        "counts": {"routes": len(app.routes)},
    }
