"""File upload endpoint for chat attachments."""

import logging
import time
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from app.core.config import settings
from app.core.messages import FILE_NOT_UPLOADED, FILE_TOO_LARGE

logger = logging.getLogger("app.api.upload")

router = APIRouter(prefix="/upload", tags=["upload"])

# Upload directory, also served as static files under /uploads
UPLOAD_DIR = Path(settings.UPLOAD_DIR)
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

UPLOAD_URL_PREFIX = "/uploads"


def stored_filename(original: Optional[str]) -> str:
    """Unique on-disk name: ``<epoch millis>-<original basename>``."""
    name = Path(original).name if original else ""
    return f"{int(time.time() * 1000)}-{name or 'file'}"


@router.post("")
async def upload_file(file: Optional[UploadFile] = File(default=None)) -> dict:
    """Store an attachment and return the URL to put in a message's ``attachment``."""
    if file is None or not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=FILE_NOT_UPLOADED,
        )

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=FILE_TOO_LARGE.format(max_mb=settings.MAX_UPLOAD_SIZE / 1024 / 1024),
        )

    filename = stored_filename(file.filename)
    file_path = UPLOAD_DIR / filename
    with open(file_path, "wb") as f:
        f.write(content)

    logger.info("File uploaded: filename=%s, size=%d", filename, len(content))
    return {"fileUrl": f"{UPLOAD_URL_PREFIX}/{filename}"}
