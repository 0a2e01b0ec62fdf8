import logging
import uuid
from datetime import timedelta
from pathlib import Path

import jwt
from sqlmodel import Session

from heartwise.core import security
from heartwise.core.config import settings
from heartwise.models import StoredFile

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_PREFIX = "image/"


class StorageError(ValueError):
    pass


class StorageService:
    """Image store on local disk, addressed by storage id and reached through signed upload URLs."""

    def __init__(self, root: str | Path | None = None):
        self.root = Path(root or settings.STORAGE_DIR)

    def _path_for(self, storage_id: uuid.UUID) -> Path:
        return self.root / storage_id.hex

    def generate_upload_url(self, *, user_id: uuid.UUID, base_url: str) -> str:
        token = security.create_upload_token(
            user_id, timedelta(minutes=settings.UPLOAD_URL_EXPIRE_MINUTES)
        )
        return f"{base_url.rstrip('/')}{settings.API_V1_STR}/files/upload?token={token}"

    def owner_from_upload_token(self, token: str) -> uuid.UUID:
        try:
            payload = security.decode_token(token)
            if payload.get("type") != "upload":
                raise jwt.InvalidTokenError("not an upload token")
            return uuid.UUID(payload.get("sub") or "")
        except (jwt.InvalidTokenError, ValueError) as exc:
            raise StorageError("Invalid or expired upload URL") from exc

    def store(
        self,
        *,
        session: Session,
        owner_id: uuid.UUID,
        filename: str,
        content_type: str,
        content: bytes,
    ) -> StoredFile:
        if not (content_type or "").startswith(ALLOWED_CONTENT_PREFIX):
            raise StorageError(f"Unsupported file type: {content_type}")
        if not content:
            raise StorageError("Uploaded file is empty")
        if len(content) > settings.MAX_UPLOAD_BYTES:
            raise StorageError("Uploaded file is too large")

        record = StoredFile(
            owner_id=owner_id,
            filename=filename or "upload",
            content_type=content_type,
            size_bytes=len(content),
        )
        self.root.mkdir(parents=True, exist_ok=True)
        self._path_for(record.id).write_bytes(content)

        session.add(record)
        session.commit()
        session.refresh(record)
        logger.info("Stored %s (%s bytes) as %s", record.filename, record.size_bytes, record.id)
        return record

    def open(self, *, session: Session, storage_id: uuid.UUID) -> tuple[StoredFile, Path] | None:
        record = session.get(StoredFile, storage_id)
        if not record:
            return None
        path = self._path_for(record.id)
        if not path.exists():
            logger.warning("Storage record %s has no file on disk", storage_id)
            return None
        return record, path

    def get_url(self, *, session: Session, storage_id: uuid.UUID | None) -> str | None:
        if storage_id is None:
            return None
        if session.get(StoredFile, storage_id) is None:
            return None
        return f"{settings.API_V1_STR}/files/{storage_id}"


_storage_service: StorageService | None = None


def get_storage() -> StorageService:
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service
