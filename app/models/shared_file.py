# app/models/shared_file.py
from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, DateTime, Integer, String

from app.models.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo; everything is stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SharedFile(Base):
    __tablename__ = "shared_files"

    id = Column(Integer, primary_key=True, index=True)
    share_code = Column(String(32), unique=True, index=True, nullable=False)  # Public lookup key
    file_name = Column(String(255), nullable=False)    # Name user uploaded
    file_size = Column(BigInteger, nullable=False)     # Size in bytes
    file_type = Column(String(255), nullable=False)    # Declared MIME type
    storage_path = Column(String(512), nullable=False) # Object key in the bucket
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    download_count = Column(Integer, nullable=False, default=0)

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or utcnow()
        return as_utc(self.expires_at) <= as_utc(now)

    def __repr__(self):
        return f"<SharedFile(id={self.id}, share_code={self.share_code}, file_name={self.file_name})>"
