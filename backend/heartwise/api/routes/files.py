import uuid
from typing import Any

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse

from heartwise.api.deps import CurrentUser, SessionDep
from heartwise.models import StoredFilePublic, UploadUrl
from heartwise.storage import StorageError, get_storage

router = APIRouter(prefix="/files", tags=["files"])


@router.post("/upload-url", response_model=UploadUrl)
def generate_upload_url(request: Request, current_user: CurrentUser) -> Any:
    """
    Short-lived URL the client posts an image to; the response carries the storage id.
    """
    url = get_storage().generate_upload_url(
        user_id=current_user.id, base_url=str(request.base_url)
    )
    return UploadUrl(upload_url=url)


@router.post("/upload", response_model=StoredFilePublic)
async def upload_file(
    *, session: SessionDep, token: str, file: UploadFile = File(...)
) -> Any:
    storage = get_storage()
    content = await file.read()
    try:
        owner_id = storage.owner_from_upload_token(token)
        record = storage.store(
            session=session,
            owner_id=owner_id,
            filename=file.filename or "upload",
            content_type=file.content_type or "",
            content=content,
        )
    except StorageError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return StoredFilePublic(
        storage_id=record.id,
        url=storage.get_url(session=session, storage_id=record.id),
        content_type=record.content_type,
        size_bytes=record.size_bytes,
    )


@router.get("/{storage_id}")
def read_file(storage_id: uuid.UUID, session: SessionDep) -> FileResponse:
    found = get_storage().open(session=session, storage_id=storage_id)
    if not found:
        raise HTTPException(status_code=404, detail="File not found")
    record, path = found
    return FileResponse(path, media_type=record.content_type, filename=record.filename)
