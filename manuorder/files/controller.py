from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import RedirectResponse
from starlette.concurrency import run_in_threadpool

from ..auth.service import CurrentUser
from ..core.config import settings
from ..core.exceptions import ValidationError
from ..database.core import DbSession
from ..schemas.files import UploadResponse
from .service import UploadService
from .storage import BlobStore, get_blob_store

router = APIRouter(tags=["Files"])

Store = Annotated[BlobStore, Depends(get_blob_store)]


@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    current_user: CurrentUser,
    store: Store,
    file: Optional[UploadFile] = File(None),
):
    """Upload a design file and get back a reference to attach to an order"""
    if file is None:
        raise ValidationError("No file uploaded")
    # One byte past the limit is enough to reject without buffering the rest
    data = await file.read(settings.MAX_UPLOAD_BYTES + 1)
    return await run_in_threadpool(
        UploadService.upload, current_user, store, file.filename, file.content_type, data
    )


@router.get("/files/{key:path}", status_code=status.HTTP_307_TEMPORARY_REDIRECT)
def download_file(key: str, current_user: CurrentUser, store: Store, db: DbSession):
    """Redirect to a short-lived signed URL for a stored file"""
    url = UploadService.resolve_download(db, current_user, store, key)
    return RedirectResponse(url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
