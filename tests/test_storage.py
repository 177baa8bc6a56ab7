import pytest

from app.services.storage import (
    BlobConflictError,
    BlobNotFoundError,
    BlobStorageError,
    S3BlobStore,
)


def _read(store, path):
    return b"".join(store.stream(path).chunks)


def test_put_stream_delete(blob_store, s3_client):
    blob_store.put("shares/abc123.txt", b"hello", "text/plain")

    stream = blob_store.stream("shares/abc123.txt")
    assert b"".join(stream.chunks) == b"hello"
    assert stream.content_type == "text/plain"
    assert stream.content_length == 5

    blob_store.delete("shares/abc123.txt")
    assert "shares/abc123.txt" not in s3_client.objects


def test_put_refuses_to_overwrite(blob_store):
    blob_store.put("shares/abc123.txt", b"first", None)
    with pytest.raises(BlobConflictError):
        blob_store.put("shares/abc123.txt", b"second", None)
    assert _read(blob_store, "shares/abc123.txt") == b"first"


def test_put_overwrite_allowed_when_requested(blob_store):
    blob_store.put("shares/abc123.txt", b"first", None)
    blob_store.put("shares/abc123.txt", b"second", None, overwrite=True)
    assert _read(blob_store, "shares/abc123.txt") == b"second"


def test_put_defaults_content_type(blob_store, s3_client):
    blob_store.put("shares/abc123", b"x", None)
    assert s3_client.content_types["shares/abc123"] == "application/octet-stream"


def test_missing_object_raises_not_found(blob_store):
    with pytest.raises(BlobNotFoundError):
        blob_store.stream("shares/nope.bin")


def test_unexpected_errors_are_wrapped():
    class _BrokenClient:
        def put_object(self, **kwargs):
            raise RuntimeError("connection reset")

        def get_object(self, **kwargs):
            raise RuntimeError("connection reset")

        def delete_object(self, **kwargs):
            raise RuntimeError("connection reset")

    store = S3BlobStore("bucket", "us-east-1", client=_BrokenClient())
    with pytest.raises(BlobStorageError) as exc:
        store.put("k", b"x", None)
    assert not isinstance(exc.value, BlobConflictError)
    with pytest.raises(BlobStorageError) as exc:
        store.stream("k")
    assert not isinstance(exc.value, BlobNotFoundError)
    with pytest.raises(BlobStorageError):
        store.delete("k")
