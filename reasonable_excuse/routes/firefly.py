"""
Firefly Shortcut Routes

Mounted under the configured firefly-shortcuts route:
- GET  /shortcuts:       configured shortcuts as JSON
- POST /add-transaction: submit a shortcut as a Firefly withdrawal

Handlers are plain functions so the blocking Firefly calls run in the
threadpool.
"""

import logging
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response

from reasonable_excuse.models.schemas import AddTransactionRequest
from reasonable_excuse.services import ShortcutService, ShortcutError, FireflyError

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(tags=["firefly"])

# Service (will be injected by main.py)
shortcut_service: ShortcutService = None


def init_firefly_routes(service: ShortcutService):
    """
    Initialize Firefly routes with the shortcut service.

    Args:
        service: Shortcut service instance
    """
    global shortcut_service
    shortcut_service = service


@router.get("/shortcuts")
def get_shortcuts():
    """
    List the configured shortcuts.

    Returns:
        Pretty-printed JSON array of shortcuts, including their IDs
    """
    logger.info("get_shortcuts request")
    return Response(content=shortcut_service.shortcuts_json(), media_type="application/json")


@router.post("/add-transaction")
def add_transaction(request: Request, payload: AddTransactionRequest):
    """
    Submit a shortcut's transaction to Firefly.

    Args:
        request: FastAPI Request object
        payload: Shortcut ID and optional amount override

    Returns:
        Firefly's response body, passed through

    Raises:
        HTTPException: 400 for an unknown shortcut or missing amount,
            500 when Firefly fails
    """
    client = request.client.host if request.client else "unknown"
    logger.info(f"add_transaction request from {client} for shortcut {payload.shortcut_id}")

    try:
        body, content_type = shortcut_service.add_transaction(
            payload.shortcut_id, payload.amount_override
        )
    except ShortcutError as e:
        logger.error(f"Could not make store transaction request: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except FireflyError as e:
        logger.error(f"Firefly request failed: {e}")
        raise HTTPException(status_code=500, detail="Firefly request failed")

    return Response(content=body, media_type=content_type)
