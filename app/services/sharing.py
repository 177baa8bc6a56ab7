"""Share lifecycle: upload under a fresh code, lookup, download, expiry purge."""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import PurePosixPath
from urllib.parse import quote

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.models.shared_file import SharedFile, utcnow
from app.services.share_codes import (
    build_share_link,
    build_storage_path,
    issue_share_code,
    normalize_share_code,
)
from app.services.storage import (
    BlobConflictError,
    BlobNotFoundError,
    BlobStorageError,
    BlobStore,
    BlobStream,
    get_blob_store,
)

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "File not found or has expired"
BACKEND_FAILURE_MESSAGE = "Something went wrong, please try again."


class ShareError(Exception):
    """Base class for share lifecycle failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ShareValidationError(ShareError):
    """Missing input; rejected before touching storage or the database."""

    status_code = 400


class ShareNotFoundError(ShareError):
    """Unknown or expired code. Both cases look the same to the caller."""

    status_code = 404

    def __init__(self, message: str = NOT_FOUND_MESSAGE):
        super().__init__(message)


class ShareBackendError(ShareError):
    """Storage or database failure, or no free code after the retry budget."""

    status_code = 503

    def __init__(self, message: str = BACKEND_FAILURE_MESSAGE):
        super().__init__(message)


@dataclass
class ShareDownload:
    record: SharedFile
    stream: BlobStream


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback and the RFC 5987 UTF-8 name."""
    ascii_name = filename.encode("ascii", "ignore").decode().replace('"', "").strip() or "download"
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


def _display_name(filename: str) -> str:
    # Browsers on Windows may send a full path
    return PurePosixPath(filename.replace("\\", "/")).name.strip()


class ShareService:
    def __init__(self, storage: BlobStore | None = None, settings: Settings | None = None) -> None:
        self.storage = storage
        self.settings = settings

    def _config(self) -> Settings:
        if self.settings is None:
            self.settings = get_settings()
        return self.settings

    def _storage_client(self) -> BlobStore:
        if self.storage is None:
            self.storage = get_blob_store()
        return self.storage

    def share_link(self, record: SharedFile) -> str:
        return build_share_link(self._config().base_url, record.share_code)

    def create_share(
        self,
        db: Session,
        *,
        data: bytes,
        filename: str | None,
        content_type: str | None,
        now: datetime | None = None,
    ) -> SharedFile:
        file_name = _display_name(filename or "")
        if not file_name:
            raise ShareValidationError("Please select a file first")

        config = self._config()
        storage = self._storage_client()
        file_type = content_type or mimetypes.guess_type(file_name)[0] or "application/octet-stream"

        for attempt in range(1, config.share_code_max_attempts + 1):
            code = issue_share_code(db, config.share_code_length)
            storage_path = build_storage_path(code, file_name, config.storage_prefix)

            try:
                storage.put(storage_path, data, file_type, overwrite=False)
            except BlobConflictError:
                logger.info(
                    "share_code_collision attempt=%s code=%s stage=storage", attempt, code
                )
                continue
            except BlobStorageError as exc:
                logger.error("share_upload_failed code=%s path=%s", code, storage_path, exc_info=True)
                raise ShareBackendError() from exc

            created_at = now or utcnow()
            record = SharedFile(
                share_code=code,
                file_name=file_name,
                file_size=len(data),
                file_type=file_type,
                storage_path=storage_path,
                created_at=created_at,
                expires_at=created_at + timedelta(hours=config.share_expiry_hours),
                download_count=0,
            )
            db.add(record)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                self._discard_blob(storage_path)
                logger.info(
                    "share_code_collision attempt=%s code=%s stage=database", attempt, code
                )
                continue
            except SQLAlchemyError as exc:
                db.rollback()
                self._discard_blob(storage_path)
                logger.error("share_record_failed code=%s path=%s", code, storage_path, exc_info=True)
                raise ShareBackendError() from exc

            db.refresh(record)
            logger.info(
                "share_created code=%s path=%s size=%s expires_at=%s",
                record.share_code,
                record.storage_path,
                record.file_size,
                record.expires_at.isoformat(),
            )
            return record

        logger.error("share_code_exhausted attempts=%s", config.share_code_max_attempts)
        raise ShareBackendError()

    def _discard_blob(self, storage_path: str) -> None:
        try:
            self._storage_client().delete(storage_path)
        except BlobStorageError:
            logger.warning("share_blob_orphaned path=%s", storage_path, exc_info=True)

    def lookup(self, db: Session, share_code: str | None, now: datetime | None = None) -> SharedFile:
        code = normalize_share_code(share_code)
        if not code:
            raise ShareValidationError("Please enter a file code")

        try:
            record = db.query(SharedFile).filter(SharedFile.share_code == code).first()
        except SQLAlchemyError as exc:
            logger.error("share_lookup_failed code=%s", code, exc_info=True)
            raise ShareBackendError() from exc

        if record is None or record.is_expired(now):
            raise ShareNotFoundError()
        return record

    def download(self, db: Session, share_code: str | None, now: datetime | None = None) -> ShareDownload:
        record = self.lookup(db, share_code, now=now)
        try:
            stream = self._storage_client().stream(record.storage_path)
        except BlobNotFoundError as exc:
            logger.warning(
                "share_blob_missing code=%s path=%s", record.share_code, record.storage_path
            )
            raise ShareNotFoundError() from exc
        except BlobStorageError as exc:
            logger.error("share_download_failed code=%s", record.share_code, exc_info=True)
            raise ShareBackendError() from exc

        self._increment_download_count(db, record)
        logger.info("share_downloaded code=%s path=%s", record.share_code, record.storage_path)
        return ShareDownload(record=record, stream=stream)

    def _increment_download_count(self, db: Session, record: SharedFile) -> None:
        # Lost updates under concurrent downloads are acceptable
        try:
            db.query(SharedFile).filter(SharedFile.id == record.id).update(
                {SharedFile.download_count: SharedFile.download_count + 1},
                synchronize_session=False,
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.warning("share_counter_update_failed code=%s", record.share_code, exc_info=True)

    def purge_expired(self, db: Session, now: datetime | None = None) -> int:
        now = now or utcnow()
        expired = db.query(SharedFile).filter(SharedFile.expires_at <= now).all()
        storage = self._storage_client()

        purged = 0
        for record in expired:
            try:
                storage.delete(record.storage_path)
            except BlobStorageError:
                logger.warning(
                    "share_purge_skipped code=%s path=%s",
                    record.share_code,
                    record.storage_path,
                    exc_info=True,
                )
                continue
            db.delete(record)
            purged += 1
        db.commit()

        logger.info("share_purged count=%s skipped=%s", purged, len(expired) - purged)
        return purged


share_service = ShareService()


def get_share_service() -> ShareService:
    return share_service
