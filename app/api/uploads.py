"""
app/api/uploads.py

Purpose: Receipt upload endpoint

- POST /upload: multipart field "file", bearer token required
- Returns the permanent URL of the stored receipt
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from app.api.deps import get_current_identity, get_upload_pipeline
from app.schemas.auth import IdentityClaim
from app.schemas.response import UploadResponse
from app.services.upload_service import UploadPipeline

router = APIRouter()


@router.post("/upload", response_model=UploadResponse)
async def upload_receipt(
    file: Optional[UploadFile] = File(None),
    identity: IdentityClaim = Depends(get_current_identity),
    pipeline: UploadPipeline = Depends(get_upload_pipeline)
) -> UploadResponse:
    url = await pipeline.handle_upload(identity, file)
    return UploadResponse(url=url)
