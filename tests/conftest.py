import io
import os
import tempfile
from pathlib import Path

import pytest
from PIL import Image

# Point the app at throwaway storage before any bingo module is imported.
_TMP = Path(tempfile.mkdtemp(prefix="bingo-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'test.db'}"
os.environ["UPLOAD_DIR"] = str(_TMP / "uploads")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["ENABLE_DEBUG_ROUTES"] = "1"

from fastapi.testclient import TestClient  # noqa: E402

from bingo.auth.models import User  # noqa: E402
from bingo.core.errors import DependencyError  # noqa: E402
from bingo.core.security import create_access_token, hash_password  # noqa: E402
from bingo.db.base import Base, SessionLocal, engine  # noqa: E402
from bingo.main import app  # noqa: E402
from bingo.notifications.notices import NotificationSender, get_sender  # noqa: E402
from bingo.progress.models import Progress  # noqa: E402
from bingo.storage.blob import BlobStorage, StoredBlob, get_storage  # noqa: E402


class FakeBlobStorage(BlobStorage):
    """In-memory blob store that records what happened to each path."""

    def __init__(self):
        self.blobs = {}
        self.deleted = []
        self.fail_store = False
        self.fail_delete = False
        self.raise_delete = False

    def store(self, data, content_type, path_hint):
        if self.fail_store:
            raise DependencyError("Failed to upload image. Please try again.")
        self.blobs[path_hint] = (data, content_type)
        return StoredBlob(path=path_hint, public_url=f"https://cdn.test/{path_hint}")

    def delete(self, path):
        if self.raise_delete:
            raise OSError("disk gone")
        if self.fail_delete:
            return False
        self.deleted.append(path)
        return self.blobs.pop(path, None) is not None


class RecordingSender(NotificationSender):
    def __init__(self):
        self.sent = []

    def send(self, notice):
        self.sent.append(notice)


def image_bytes(fmt: str = "PNG") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), (200, 30, 30)).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture(autouse=True)
def _fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage():
    return FakeBlobStorage()


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def make_user(db):
    def _make(email: str, manager: bool = False, password: str = "password123") -> User:
        user = User(email=email, password_hash=hash_password(password), is_manager=manager)
        db.add(user)
        db.commit()
        db.refresh(user)
        if not manager:
            db.add(Progress(user_id=user.id))
            db.commit()
        return user

    return _make


@pytest.fixture
def participant(make_user):
    return make_user("guest@example.com")


@pytest.fixture
def manager(make_user):
    return make_user("manager@example.com", manager=True)


@pytest.fixture
def client(storage, sender):
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_sender] = lambda: sender
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def auth(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}
