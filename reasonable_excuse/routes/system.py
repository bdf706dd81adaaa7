"""
System Monitoring Routes

Provides health checks, sanitized configuration and timing statistics.
"""

import logging
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from reasonable_excuse.models.schemas import HealthResponse
from reasonable_excuse.models.settings import ServerSettings
from reasonable_excuse.utils.performance import get_tracker
from reasonable_excuse import __version__

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(tags=["system"])

# Settings (will be injected by main.py)
settings: ServerSettings = None


def init_system_routes(server_settings: ServerSettings):
    """
    Initialize system routes with the loaded settings.

    Args:
        server_settings: Settings the app was built from
    """
    global settings
    settings = server_settings


def _mounted_groups() -> dict:
    return {
        "upload": settings.upload is not None,
        "firefly_shortcuts": settings.firefly_shortcuts is not None,
        "calendar": settings.calendar is not None,
    }


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint for monitoring.

    Returns:
        Status, version and which route groups are mounted
    """
    logger.debug("Health check requested")
    return HealthResponse(status="healthy", version=__version__, routes=_mounted_groups())


@router.get("/config")
async def get_config():
    """
    Get sanitized configuration information.

    The Firefly PAT is never read into the settings, so only its file path
    can appear here; the calendar filter and upstream URLs are included.

    Returns:
        JSON response with safe configuration data
    """
    logger.debug("Config requested")

    safe_config = {
        "address": settings.address,
        "allow_origin": settings.allow_origin,
        "version": __version__,
    }

    if settings.upload:
        safe_config["upload"] = {
            "route": settings.upload.route,
            "target_dir": str(settings.upload.target_dir),
            "filename_length": settings.upload.filename_length,
        }
    if settings.firefly_shortcuts:
        safe_config["firefly_shortcuts"] = {
            "route": settings.firefly_shortcuts.route,
            "firefly_url": settings.firefly_shortcuts.firefly_url,
            "shortcut_count": len(settings.firefly_shortcuts.shortcuts),
        }
    if settings.calendar:
        safe_config["calendar"] = {
            "route": settings.calendar.route,
            "base_url": settings.calendar.base_url,
            "pass_param": settings.calendar.pass_param,
            "filter": settings.calendar.filter,
        }

    return JSONResponse(content=safe_config)


@router.get("/stats/performance")
async def performance_stats():
    """
    Get timing statistics for uploads and upstream calls.

    Returns:
        JSON response with performance statistics
    """
    logger.debug("Performance stats requested")

    stats = get_tracker().report(log_level="DEBUG")

    return JSONResponse(content={
        "performance_metrics": stats,
        "note": "Metrics are cumulative since server start. Times in milliseconds."
    })
