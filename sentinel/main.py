"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sentinel.api import (
    auth,
    categories,
    dynamic_fields,
    escalations,
    items,
    notifications,
    recipients,
    reminder_rules,
    templates,
)
from sentinel.config import get_settings
from sentinel.exceptions import (
    ConcurrentModification,
    DynamicFieldInvalid,
    InvalidTransition,
    PermissionDenied,
    SentinelError,
    TemplateFieldMissing,
)
from sentinel.logging_config import configure_logging

settings = get_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)

# Checked in order; subclasses before their parents
ERROR_STATUS = (
    (PermissionDenied, status.HTTP_403_FORBIDDEN),
    (InvalidTransition, status.HTTP_409_CONFLICT),
    (ConcurrentModification, status.HTTP_409_CONFLICT),
    (TemplateFieldMissing, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (DynamicFieldInvalid, status.HTTP_422_UNPROCESSABLE_ENTITY),
)


def status_for(error: SentinelError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    logger.info(f"Starting Sentinel API ({settings.environment})")
    yield


app = FastAPI(
    title="Sentinel API",
    description="Expiry reminders, document workflow and escalation ladder",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(SentinelError)
async def sentinel_error_handler(request: Request, exc: SentinelError) -> JSONResponse:
    """Map domain errors to HTTP responses with a machine-readable kind."""
    status_code = status_for(exc)
    logger.info(f"{request.method} {request.url.path} -> {status_code} {exc.kind}")
    content = {"detail": exc.user_message, "kind": exc.kind}
    if isinstance(exc, TemplateFieldMissing):
        content["fields"] = exc.fields
    elif isinstance(exc, DynamicFieldInvalid):
        content["errors"] = exc.errors
    return JSONResponse(status_code=status_code, content=content)


# CORS middleware for development
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", settings.app_base_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Register routers
app.include_router(auth.router)
app.include_router(auth.users_router)
app.include_router(categories.router)
app.include_router(recipients.router)
app.include_router(items.router)
app.include_router(reminder_rules.router)
app.include_router(escalations.router)
app.include_router(templates.router)
app.include_router(dynamic_fields.router)
app.include_router(notifications.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
