"""
reasonable-excuse Main Application

FastAPI application factory:
- Loads config.kdl into ServerSettings
- Builds a service per configured route group, failing fast on bad setup
- Mounts each route group under its configured route
- Optional CORS header, request logging and JSON error handlers

Run with ``python run.py`` or ``uvicorn --factory reasonable_excuse.main:create_app``.
"""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Config
from reasonable_excuse.models.settings import ServerSettings
from reasonable_excuse.services import (
    CalendarService,
    FireflyClient,
    ShortcutService,
    UploadService,
    load_settings,
)
from reasonable_excuse.routes import (
    upload_router,
    firefly_router,
    calendar_router,
    pcs_router,
    system_router,
)
from reasonable_excuse.routes.upload import init_upload_routes
from reasonable_excuse.routes.firefly import init_firefly_routes
from reasonable_excuse.routes.calendar import init_calendar_routes
from reasonable_excuse.routes.system import init_system_routes
from reasonable_excuse.utils.performance import get_tracker
from reasonable_excuse import __version__

# ===== Configure Logging =====
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=Config.log_handlers()
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the mounted endpoints on startup and timing stats on shutdown."""
    logger.info("=" * 60)
    logger.info(f"reasonable-excuse v{__version__} started")
    logger.info("Available endpoints:")
    for line in app.state.endpoints:
        logger.info(f"    - {line}")
    logger.info("=" * 60)

    yield

    logger.info("reasonable-excuse shutting down...")
    get_tracker().report(log_level="INFO")
    logger.info("Server shutdown complete")


# ===== Error Handlers =====

async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Render HTTP errors as JSON.

    Args:
        request: The request that caused the error
        exc: The HTTP exception

    Returns:
        JSON error response
    """
    logger.error(f"HTTP {exc.status_code} error on {request.url.path}: {exc.detail}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail,
            "status_code": exc.status_code,
            "path": str(request.url.path)
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle request validation errors (e.g., a malformed transaction request).

    Returns:
        JSON error response with validation details
    """
    logger.error(f"Validation error on {request.url.path}: {exc.errors()}")

    return JSONResponse(
        status_code=422,
        content={
            "error": "Invalid request data",
            "details": jsonable_errors(exc),
            "path": str(request.url.path)
        }
    )


async def general_exception_handler(request: Request, exc: Exception):
    """
    Handle unexpected errors.

    Returns:
        JSON error response
    """
    logger.exception(f"Unexpected error on {request.url.path}: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "error": "An unexpected error occurred",
            "path": str(request.url.path)
        }
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold exception objects, which JSONResponse cannot encode
    return [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]


# ===== Middleware =====

async def log_requests(request: Request, call_next):
    """
    Log all incoming requests.

    Args:
        request: The incoming request
        call_next: The next middleware/handler

    Returns:
        The response from the next handler
    """
    client = request.client.host if request.client else "unknown"
    logger.debug(f"{request.method} {request.url.path} from {client}")

    response = await call_next(request)

    logger.debug(f"{request.method} {request.url.path} -> {response.status_code}")
    return response


# ===== Application Factory =====

def create_app(settings: Optional[ServerSettings] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use; read from Config.CONFIG_FILE when omitted

    Returns:
        The configured FastAPI app

    Raises:
        ConfigError: If the config file is invalid or a route group cannot
            be set up (missing upload dir, unreadable PAT, bad filter regex)
    """
    if settings is None:
        Config.display()
        settings = load_settings(Config.CONFIG_FILE)

    logger.info(f"Starting with address {settings.address}")

    app = FastAPI(
        title="reasonable-excuse",
        description="File uploads, Firefly shortcuts and a filtering calendar proxy",
        version=__version__,
        lifespan=lifespan,
    )
    endpoints: List[str] = []

    if settings.allow_origin:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[settings.allow_origin],
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.info(f"CORS enabled for origin {settings.allow_origin}")

    # ===== Route Groups =====
    if settings.upload:
        init_upload_routes(UploadService(settings.upload))
        app.include_router(upload_router, prefix=settings.upload.route)
        endpoints.append(f"GET  {settings.upload.route}  (upload hint)")
        endpoints.append(f"POST {settings.upload.route}  (upload file)")

    if settings.firefly_shortcuts:
        firefly = settings.firefly_shortcuts
        client = FireflyClient.from_settings(firefly)
        init_firefly_routes(ShortcutService(firefly, client))
        app.include_router(firefly_router, prefix=firefly.route)
        endpoints.append(f"GET  {firefly.route}/shortcuts")
        endpoints.append(f"POST {firefly.route}/add-transaction")

    if settings.calendar:
        init_calendar_routes(CalendarService(settings.calendar))
        app.include_router(calendar_router, prefix=settings.calendar.route)
        endpoints.append(
            f"GET  {settings.calendar.route}?{settings.calendar.pass_param}=...  (calendar)"
        )

    app.include_router(pcs_router)
    endpoints.append("POST /pcs")

    init_system_routes(settings)
    app.include_router(system_router)
    endpoints.extend(["GET  /health", "GET  /config", "GET  /stats/performance"])

    # ===== Error Handlers & Middleware =====
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
    app.middleware("http")(log_requests)

    app.state.settings = settings
    app.state.endpoints = endpoints

    logger.info("All routes registered")
    return app
