"""Image upload endpoint."""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from sqlmodel import Session

from slidecast.config import settings
from slidecast.database import get_session
from slidecast.exceptions import InvalidUploadError
from slidecast.schemas.image import UploadResponse
from slidecast.services.image_service import save_upload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["upload"])


@router.post("/upload", response_model=UploadResponse, response_model_exclude_none=True)
def upload(
    file: UploadFile = File(...),
    overwrite: bool = Form(default=False),
    session: Session = Depends(get_session),
):
    """Upload an image file; an existing filename needs `overwrite=true`."""
    content_type = file.content_type or "application/octet-stream"
    if not content_type.startswith("image/"):
        raise HTTPException(status_code=415, detail="Invalid file type. Only images are allowed.")

    file_data = file.file.read(settings.max_upload_bytes + 1)
    if len(file_data) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="File too large. Limit is 50MB.")

    try:
        result = save_upload(
            file_data=file_data,
            original_name=file.filename or "",
            content_type=content_type,
            session=session,
            overwrite=overwrite,
        )
    except InvalidUploadError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if result.needs_overwrite:
        return UploadResponse(
            message=f"File '{result.filename}' already exists.",
            overwrite_prompt=True,
        )
    if result.overwritten:
        return UploadResponse(message=f"File '{result.filename}' overwritten successfully.")

    body = UploadResponse(
        message=f"File '{result.filename}' uploaded successfully.",
        image_id=result.image_id,
    )
    return JSONResponse(status_code=201, content=body.model_dump(by_alias=True, exclude_none=True))
