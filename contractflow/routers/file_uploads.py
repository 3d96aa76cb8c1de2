import json
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from contractflow.core.config import settings
from contractflow.core.errors import StorageWriteError
from contractflow.repositories.storage_repo import StorageRepository
from contractflow.routers.deps import get_sb

router = APIRouter()


class SignedUploadIn(BaseModel):
    bucket: Optional[str] = None
    path: Optional[str] = None


def _error(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message})


@router.post("/file-uploads")
async def create_signed_upload(request: Request, sb=Depends(get_sb)):
    """Signed URL the browser uses to put a contract into the contracts bucket before parsing."""
    raw = await request.body()
    try:
        body = SignedUploadIn.model_validate(json.loads(raw) if raw else {})
    except (ValueError, PydanticValidationError) as e:
        return _error(f"Invalid request body: {e}")

    if not body.path:
        return _error("path required")

    # service-role client: never sign into buckets other than the contracts bucket
    bucket = body.bucket or settings.CONTRACTS_BUCKET
    if bucket != settings.CONTRACTS_BUCKET:
        return _error(f"bucket not allowed: {bucket}")

    storage = StorageRepository(sb, bucket)
    try:
        signed = storage.create_signed_upload_url(body.path)
    except StorageWriteError as e:
        return _error(e.message)

    return {
        "signedUrl": signed["signed_url"],
        "token": signed["token"],
        "bucket": bucket,
        "path": signed["path"],
    }
