"""HLPFL Forms Backend - FastAPI Application Factory."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from hlpfl_forms.api import api_router
from hlpfl_forms.core import Settings, get_settings, setup_logging
from hlpfl_forms.core.exceptions import ApiError, error_response
from hlpfl_forms.core.logging import get_logger
from hlpfl_forms.dependencies import AppServices, build_services
from hlpfl_forms.middleware import AuthMiddleware
from hlpfl_forms.storage.purge import state_purge_loop

logger = get_logger("main")

HTTP_ERROR_NAMES = {
    404: ("Endpoint not found", "The requested endpoint does not exist."),
    405: ("Method not allowed", "The requested method is not supported for this endpoint."),
}


def task_done_callback(task: asyncio.Task[None]) -> None:
    """Log unhandled exceptions from background tasks."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Background task {task.get_name()} failed: {exc}")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    services: AppServices = app.state.services
    settings = services.settings

    setup_logging(level=settings.log_level, format_type=settings.log_format)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(
        f"Security policy: tokens={services.policy.token_scheme}, "
        f"csrf={'on' if services.policy.enforce_csrf else 'off'}"
    )

    await services.store.initialize()

    purge_task = asyncio.create_task(
        state_purge_loop(services.store, settings.state_purge_interval_seconds)
    )
    purge_task.add_done_callback(task_done_callback)

    yield

    logger.info("Shutting down...")
    purge_task.cancel()
    try:
        await purge_task
    except asyncio.CancelledError:
        pass
    await services.store.close()


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return exc.to_response()


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = "The request body is invalid."
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    return error_response(400, "Validation failed", message)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    error, message = HTTP_ERROR_NAMES.get(
        exc.status_code, (str(exc.detail), str(exc.detail))
    )
    return error_response(exc.status_code, error, message, headers=getattr(exc, "headers", None))


def create_app(
    settings: Settings | None = None,
    services: AppServices | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or (services.settings if services else get_settings())
    services = services or build_services(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Hosted form builder API",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )
    app.state.services = services

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # Single outermost middleware: headers, rate limits, auth, CSRF, 500 boundary
    app.add_middleware(AuthMiddleware, services=services)

    app.include_router(api_router)

    return app


app = create_app()
