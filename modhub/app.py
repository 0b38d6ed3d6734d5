"""
FastAPI application entry point for the mod portal backend.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import get_route_path

from modhub.config import get_settings
from modhub.errors import (
    MethodNotAllowedError,
    ModhubError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from modhub.responses import error, json_response, preflight
from modhub.routes import router

logger = logging.getLogger(__name__)

SERVICE_NAME = "筑界同盟 API 服务"
SERVICE_VERSION = "1.0.0"

_STATUS_ERRORS = {
    404: NotFoundError,
    405: MethodNotAllowedError,
}


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="Mod Portal Backend", version=SERVICE_VERSION)
    app.include_router(router, prefix=settings.api_prefix)
    admin_prefix = f"{settings.api_prefix}/admin/"

    @app.middleware("http")
    async def cors_and_admin_gate(request: Request, call_next):
        if request.method == "OPTIONS":
            return preflight()
        # Relative to root_path so a mounted or proxied app is still gated.
        if get_route_path(request.scope).startswith(admin_prefix):
            token = request.headers.get(settings.admin_auth_header)
            if token != settings.admin_auth_token:
                return error(UnauthorizedError.default_message, 401)
        return await call_next(request)

    @app.exception_handler(ModhubError)
    async def handle_modhub_error(request: Request, exc: ModhubError):
        if exc.status_code >= 500:
            logger.error("Request %s %s failed: %r", request.method, request.url.path, exc)
        return error(exc.message, exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        known = _STATUS_ERRORS.get(exc.status_code)
        message = known.default_message if known else str(exc.detail)
        return error(message, exc.status_code, exc.headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        logger.info("Rejected payload for %s: %s", request.url.path, exc.errors())
        return error(ValidationError.default_message, 400)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error for %s %s", request.method, request.url.path)
        return error(ModhubError.default_message, 500)

    @app.get("/")
    def service_info():
        return json_response({"message": SERVICE_NAME, "version": SERVICE_VERSION})

    return app


app = create_app()
