from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import WorkflowError
from app.core.logging import RequestLoggingMiddleware, configure_logging
from app.core.observability import PrometheusMiddleware, metrics_endpoint
from app.core.settings import Settings, settings
from app.db.session import engine, get_db
from app.modules.router_registry import include_all_routers

configure_logging(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.project_name, version=settings.project_version)


def check_production_settings(config: Settings) -> None:
    """Refuse to start a production deployment with development defaults."""
    if not config.is_production:
        return
    if any(origin.strip() == "*" for origin in config.allow_origins):
        raise RuntimeError("ALLOW_ORIGINS cannot include '*' in production")
    if config.jwt_secret.startswith("change_me"):
        raise RuntimeError("JWT_SECRET must be set in production")
    # Disabled delivery logs approval codes instead of sending them.
    if config.email_provider == "disabled":
        raise RuntimeError("EMAIL_PROVIDER must be configured in production")


check_production_settings(settings)

# Always allow localhost during development (Vite often changes ports).
allow_origin_regex = None
if not settings.is_production:
    allow_origin_regex = r"^http://(localhost|127\.0\.0\.1)(:\d+)?$"

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins,
    allow_origin_regex=allow_origin_regex,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-Id", "Accept"],
)

# Observability middleware
app.add_middleware(PrometheusMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# Prometheus metrics endpoint
app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], tags=["observability"], include_in_schema=False)

include_all_routers(app)


def _error(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message}, headers=headers)


@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError) -> JSONResponse:
    return _error(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return _error(exc.status_code, message, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        message = str(first.get("msg", message)).removeprefix("Value error, ")
        field = ".".join(str(part) for part in first.get("loc", ())[1:])
        if field and first.get("type") == "missing":
            message = f"{field} is required"
    return _error(400, message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_error",
        exc_info=exc,
        extra={"request_id": getattr(request.state, "request_id", None), "path": request.url.path},
    )
    return _error(500, "Internal server error")


@app.get("/healthz", tags=["health"])
def healthcheck(db: Session = Depends(get_db)) -> dict[str, str]:
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("healthcheck_failed", exc_info=exc)
        raise HTTPException(status_code=503, detail="Service unavailable") from exc
    return {"status": "ok", "database": "ok"}


@app.get("/readyz", tags=["health"])
def readiness() -> dict[str, str]:
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
            try:
                result = connection.execute(text("SELECT version_num FROM alembic_version")).scalar()
            except SQLAlchemyError:
                raise HTTPException(status_code=503, detail="Migrations not applied")
    except HTTPException:
        raise
    except SQLAlchemyError as exc:  # pragma: no cover - runtime readiness check
        raise HTTPException(status_code=503, detail="Database unavailable") from exc
    return {"status": "ok", "alembic_revision": str(result)}


@app.get("/version", tags=["health"])
def version() -> dict[str, str | None]:
    return {
        "version": settings.project_version,
        "git_sha": settings.git_sha,
        "build": settings.build_version,
        "environment": settings.environment,
    }


@app.on_event("startup")
def startup_event() -> None:
    uploads_path = settings.ensure_uploads_dir()
    logger.info("startup", extra={"path": str(uploads_path)})
