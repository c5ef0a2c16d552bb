"""FastAPI application for the identity core"""

import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from identity.auth.service import AuthService, build_auth_service
from identity.housekeeping.cache_cleaner import start_cache_cleaner, stop_cache_cleaner
from identity.store.schema import ensure_tables
from identity.utils.config import config_manager
from identity.utils.exceptions import (
    IdConflictError,
    IdentityError,
    InvalidCredentials,
    LockTimeoutError,
    MissingToken,
    PermissionDenied,
    RecordNotFound,
    SessionExpired,
    ValidationError,
    WrongPassword,
)
from identity.utils.logger import get_logger, setup_logging

from .api import action_router, auth_router, router as api_router

logger = get_logger(__name__)

STATUS_CODES = {
    InvalidCredentials: 401,
    MissingToken: 401,
    SessionExpired: 401,
    ValidationError: 400,
    WrongPassword: 400,
    RecordNotFound: 404,
    PermissionDenied: 403,
    IdConflictError: 409,
    LockTimeoutError: 503,
}


def status_for(exc: IdentityError) -> int:
    for exc_type, code in STATUS_CODES.items():
        if isinstance(exc, exc_type):
            return code
    return 500


def create_app(service: Optional[AuthService] = None) -> FastAPI:
    app = FastAPI(
        title="Branch Identity",
        description="Sessions, handshake tokens and sequential identifiers",
        version="1.0.0",
    )
    app.state.auth_service = service

    cors_origins = os.getenv("CORS_ORIGINS", "*").split(",")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(IdentityError)
    async def identity_error_handler(request: Request, exc: IdentityError):
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error("Request failed", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    @app.on_event("startup")
    async def startup_event():
        settings = app.state.auth_service.settings if app.state.auth_service else config_manager.settings
        setup_logging(
            level=settings.logging.level,
            fmt=settings.logging.format,
            file_path=settings.logging.file_path,
            max_bytes=settings.logging.max_bytes,
            backup_count=settings.logging.backup_count,
        )
        if app.state.auth_service is None:
            app.state.auth_service = build_auth_service(settings)

        created = ensure_tables(app.state.auth_service.store, settings.store.employees_table)
        if created:
            logger.info("Initialized missing tables", tables=created)

        if settings.housekeeping.enabled:
            start_cache_cleaner(
                app.state.auth_service.cache,
                interval_minutes=settings.housekeeping.cache_clear_interval_minutes,
            )
        logger.info("Identity service started", environment=settings.app.environment)

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Shutdown event triggered - stopping background jobs")
        stop_cache_cleaner()

    app.include_router(auth_router)
    app.include_router(action_router)
    app.include_router(api_router)
    return app


app = create_app()
