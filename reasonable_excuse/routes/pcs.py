"""
PCS Route

Accepts any text body on POST /pcs and acknowledges it.
"""

import logging
from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pcs"])


@router.post("/pcs", response_class=PlainTextResponse)
async def pcs(request: Request):
    body = await request.body()
    client = request.client.host if request.client else "unknown"
    logger.info(f"PCS request from {client} ({len(body)} bytes)")
    return "Thanks!"
