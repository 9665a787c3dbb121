"""Shared fixtures: isolated storage, in-memory database and a fake transport."""

import os
import tempfile

# Settings are read at import time, so point them somewhere harmless first.
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="tryon-storage-")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OPENAI_API_KEY"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.database import Base, get_db  # noqa: E402
from app.dependencies import get_generation_transport, get_storage, get_usage_tracker  # noqa: E402
from app.main import app  # noqa: E402
from app.models import db as _models  # noqa: E402,F401
from app.services.storage import LocalStorageBackend  # noqa: E402
from app.services.usage import UsageTracker  # noqa: E402

from fakes import FakeTransport, png_bytes  # noqa: E402


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def usage():
    return UsageTracker()


@pytest.fixture
def storage_backend(tmp_path):
    return LocalStorageBackend(root=tmp_path / "storage")


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def client(fake_transport, usage, storage_backend, db_session):
    app.dependency_overrides[get_generation_transport] = lambda: fake_transport
    app.dependency_overrides[get_usage_tracker] = lambda: usage
    app.dependency_overrides[get_storage] = lambda: storage_backend
    app.dependency_overrides[get_db] = lambda: db_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def sample_image_bytes():
    return png_bytes(64, 96)
