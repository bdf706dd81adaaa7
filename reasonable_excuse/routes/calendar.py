"""
Calendar Proxy Route

GET on the configured calendar route fetches the upstream feed, forwarding
the configured query parameter, and returns it with filtered text removed.
"""

import logging
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response

from reasonable_excuse.services import CalendarService, CalendarError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["calendar"])

# Service (will be injected by main.py)
calendar_service: CalendarService = None


def init_calendar_routes(service: CalendarService):
    """Initialize the calendar route with its service."""
    global calendar_service
    calendar_service = service


@router.get("")
def get_calendar(request: Request):
    """Proxy and filter the upstream calendar."""
    client = request.client.host if request.client else "unknown"
    logger.info(f"Calendar request from {client}")

    param = calendar_service.pass_param
    value = request.query_params.get(param)
    if value is None:
        logger.warning(f"Bad calendar request, no {param} query param")
        raise HTTPException(status_code=400, detail=f"Missing query parameter '{param}'")

    try:
        body = calendar_service.fetch(value)
    except CalendarError as e:
        logger.error(str(e))
        raise HTTPException(status_code=500, detail="Failed to get base calendar")

    return Response(content=body, media_type="text/calendar; charset=utf-8")
