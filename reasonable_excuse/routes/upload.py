"""
Upload Routes

Mounted at the configured upload route:
- GET:  usage hint
- POST: multipart upload, first field must be ``file``
"""

import logging
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from reasonable_excuse.services import UploadService, UploadError

logger = logging.getLogger(__name__)

# Create router (paths are relative to the configured route)
router = APIRouter(tags=["upload"])

# Service (will be injected by main.py)
upload_service: UploadService = None


def init_upload_routes(service: UploadService):
    """
    Initialize upload routes with the upload service.

    Args:
        service: Upload service instance
    """
    global upload_service
    upload_service = service


def _client(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.get("", response_class=PlainTextResponse)
async def upload_get(request: Request):
    """Tell browsers what this address is for."""
    logger.info(f"GET upload from {_client(request)}")
    return "POST to this address to upload files"


@router.post("", response_class=PlainTextResponse)
async def upload_post(request: Request, keep_name: bool = False):
    """
    Store an uploaded file.

    Process:
    1. Read the multipart form and take its first field, which must be ``file``
    2. Store it under a random name with the original extension, or under
       the original name when ``keep_name`` is set
    3. Return the stored name

    Args:
        request: FastAPI Request object
        keep_name: Keep the uploaded file's own name

    Returns:
        The stored file name as plain text
    """
    logger.info(f"Upload request from {_client(request)}")

    form = await request.form()
    try:
        items = form.multi_items()
        if not items:
            raise HTTPException(status_code=400, detail="Expected a multipart field named 'file'")

        field_name, upload = items[0]
        if field_name != "file" or not isinstance(upload, UploadFile) or not upload.filename:
            raise HTTPException(status_code=400, detail="First multipart field must be a file named 'file'")

        logger.info(f"Got file {upload.filename}")

        try:
            return await run_in_threadpool(
                upload_service.store, upload.filename, upload.file, keep_name
            )
        except UploadError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except OSError:
            raise HTTPException(status_code=500, detail="Failed to store upload")
    finally:
        await form.close()
