"""S3 bucket holding the bytes of shared files."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Protocol

import boto3

from app.core.config import get_settings

CHUNK_SIZE = 1024 * 1024

MISSING_CODES = frozenset({"404", "NoSuchKey", "NotFound"})
# 412 from AWS, 409 when two conditional writes race on the same key
TAKEN_CODES = frozenset({"412", "409", "PreconditionFailed", "ConditionalRequestConflict"})


class BlobStorageError(Exception):
    """Bucket unreachable or the request was rejected."""


class BlobNotFoundError(BlobStorageError):
    pass


class BlobConflictError(BlobStorageError):
    """The path is already occupied."""


@dataclass
class BlobStream:
    chunks: Iterator[bytes]
    content_type: str | None
    content_length: int | None


class BlobStore(Protocol):
    def put(
        self, path: str, data: bytes, content_type: str | None, overwrite: bool = False
    ) -> None: ...
    def stream(self, path: str) -> BlobStream: ...
    def delete(self, path: str) -> None: ...


def s3_error_code(exc: Exception) -> str:
    error = getattr(exc, "response", None) or {}
    return str(error.get("Error", {}).get("Code", ""))


class S3BlobStore:
    def __init__(
        self,
        bucket_name: str,
        region: str,
        access_key: str | None = None,
        secret_key: str | None = None,
        endpoint_url: str | None = None,
        client: Any | None = None,
    ) -> None:
        self.bucket_name = bucket_name
        self.client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
        )

    def put(
        self, path: str, data: bytes, content_type: str | None, overwrite: bool = False
    ) -> None:
        extra = {} if overwrite else {"IfNoneMatch": "*"}
        try:
            self.client.put_object(
                Bucket=self.bucket_name,
                Key=path,
                Body=data,
                ContentType=content_type or "application/octet-stream",
                **extra,
            )
        except Exception as exc:
            if s3_error_code(exc) in TAKEN_CODES:
                raise BlobConflictError(path) from exc
            raise BlobStorageError(f"put failed for {path}") from exc

    def stream(self, path: str) -> BlobStream:
        try:
            obj = self.client.get_object(Bucket=self.bucket_name, Key=path)
        except Exception as exc:
            if s3_error_code(exc) in MISSING_CODES:
                raise BlobNotFoundError(path) from exc
            raise BlobStorageError(f"get failed for {path}") from exc

        body = obj["Body"]
        return BlobStream(
            chunks=iter(lambda: body.read(CHUNK_SIZE), b""),
            content_type=obj.get("ContentType"),
            content_length=obj.get("ContentLength"),
        )

    def delete(self, path: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=path)
        except Exception as exc:
            raise BlobStorageError(f"delete failed for {path}") from exc


@lru_cache(maxsize=1)
def get_blob_store() -> S3BlobStore:
    settings = get_settings()
    return S3BlobStore(
        bucket_name=settings.aws_s3_bucket_name,
        region=settings.aws_region,
        access_key=settings.aws_access_key_id,
        secret_key=settings.aws_secret_access_key,
        endpoint_url=settings.aws_s3_endpoint_url,
    )
