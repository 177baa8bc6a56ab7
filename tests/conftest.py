import os

os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")
os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_S3_BUCKET_NAME", "fazshare-test")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BASE_URL"] = "https://host"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings
from app.models import shared_file  # noqa: F401
from app.models.database import Base, get_db
from app.services.sharing import ShareService, get_share_service
from app.services.storage import S3BlobStore


class ClientError(Exception):
    def __init__(self, code: str):
        super().__init__(code)
        self.response = {"Error": {"Code": code}}


class FakeBody:
    def __init__(self, data: bytes):
        self._data = data

    def read(self, size: int = -1) -> bytes:
        if size == -1:
            data, self._data = self._data, b""
            return data
        chunk = self._data[:size]
        self._data = self._data[size:]
        return chunk


class FakeS3Client:
    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.put_calls: list[str] = []
        self.deleted: list[str] = []

    def put_object(self, Bucket: str, Key: str, Body: bytes, ContentType: str | None = None, IfNoneMatch: str | None = None):
        self.put_calls.append(Key)
        if IfNoneMatch == "*" and Key in self.objects:
            raise ClientError("PreconditionFailed")
        self.objects[Key] = Body
        if ContentType:
            self.content_types[Key] = ContentType

    def get_object(self, Bucket: str, Key: str):
        if Key not in self.objects:
            raise ClientError("NoSuchKey")
        return {
            "Body": FakeBody(self.objects[Key]),
            "ContentType": self.content_types.get(Key),
            "ContentLength": len(self.objects[Key]),
        }

    def delete_object(self, Bucket: str, Key: str):
        self.deleted.append(Key)
        self.objects.pop(Key, None)


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def s3_client():
    return FakeS3Client()


@pytest.fixture()
def blob_store(s3_client):
    return S3BlobStore("fazshare-test", "us-east-1", client=s3_client)


@pytest.fixture()
def service(blob_store):
    return ShareService(storage=blob_store, settings=get_settings())


@pytest.fixture()
def client(db_session, service):
    from app.main import app

    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_share_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
