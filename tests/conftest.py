"""Pytest configuration and fixtures."""

import os
import tempfile
from datetime import datetime

# Settings are read at import time
os.environ["BACKEND_URL"] = "sqlite:///:memory:"
os.environ["BACKEND_KEY"] = "test-backend-key"
os.environ["STORAGE_DIR"] = tempfile.mkdtemp(prefix="voice-changer-storage-")
os.environ["PUBLIC_BASE_URL"] = "http://testserver"
os.environ["PROCESSING_DELAY_SECONDS"] = "0"

from typing import Any  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from voice_changer.backend import BackendClient, HostedBackend, LocalStorage, set_backend  # noqa: E402
from voice_changer.backend.base import AnonymousSession  # noqa: E402
from voice_changer.config import get_settings  # noqa: E402
from voice_changer.database import Base  # noqa: E402
from voice_changer.errors import BackendError  # noqa: E402
from voice_changer.models.voice_file import VoiceFile  # noqa: F401, E402
from voice_changer.services.jwt import JWTService  # noqa: E402
from voice_changer.services.submission import get_workflow_registry  # noqa: E402


class FakeBackend(BackendClient):
    """In-memory backend that can be told to fail at any stage.

    ``fail_on`` maps a method name to the backend error message to return,
    ``crash_on`` maps a method name to an arbitrary exception to raise.
    """

    def __init__(
        self,
        fail_on: dict[str, str] | None = None,
        crash_on: dict[str, Exception] | None = None,
        public_url: str | None = "https://cdn.example.com/voice-files",
    ) -> None:
        self.fail_on = fail_on or {}
        self.crash_on = crash_on or {}
        self.public_url = public_url
        self.objects: dict[str, bytes] = {}
        self.rows: list[dict[str, Any]] = []
        self.calls: list[str] = []
        self.session: AnonymousSession | None = None

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if name in self.crash_on:
            raise self.crash_on[name]
        if name in self.fail_on:
            raise BackendError(self.fail_on[name])

    def get_session(self) -> AnonymousSession | None:
        self._check("get_session")
        return self.session

    def sign_in_anonymously(self, email: str) -> AnonymousSession:
        self._check("sign_in_anonymously")
        self.session = AnonymousSession("fake-session", email, "fake-token", datetime(2099, 1, 1))
        return self.session

    def upload(self, bucket: str, path: str, data: bytes, content_type: str | None = None) -> str:
        self._check("upload")
        self.objects[f"{bucket}/{path}"] = data
        return path

    def get_public_url(self, bucket: str, path: str) -> str | None:
        self._check("get_public_url")
        if self.public_url is None:
            return None
        return f"{self.public_url}/{path}"

    def insert(self, table: str, values: dict[str, Any]) -> dict[str, Any]:
        self._check("insert")
        row = {"id": len(self.rows) + 1, "processed_filename": None, **values}
        self.rows.append(row)
        return dict(row)

    def update(self, table: str, record_id: int, values: dict[str, Any]) -> dict[str, Any]:
        self._check("update")
        row = next(r for r in self.rows if r["id"] == record_id)
        row.update(values)
        return dict(row)

    def select(self, table: str) -> list[dict[str, Any]]:
        self._check("select")
        return [dict(r) for r in self.rows]


@pytest.fixture(name="session_factory")
def session_factory_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(name="backend")
def backend_fixture(session_factory) -> HostedBackend:
    """Hosted backend over the test database and the test storage directory, signed in."""
    settings = get_settings()
    backend = HostedBackend(
        session_factory=session_factory,
        storage=LocalStorage(settings.STORAGE_DIR, settings.PUBLIC_BASE_URL),
        jwt_service=JWTService(settings.BACKEND_KEY),
    )
    backend.sign_in_anonymously(settings.ANONYMOUS_EMAIL)
    return backend


@pytest.fixture(name="fake_backend")
def fake_backend_fixture() -> FakeBackend:
    return FakeBackend()


def _make_client(backend: BackendClient):
    from main import app
    from voice_changer.rate_limit import limiter

    set_backend(backend)
    get_workflow_registry().clear()
    limiter.enabled = False
    try:
        with TestClient(app) as c:
            yield c
    finally:
        limiter.enabled = True
        set_backend(None)
        get_workflow_registry().clear()


@pytest.fixture(name="client")
def client_fixture(backend: HostedBackend):
    """Test client wired to the hosted test backend, rate limiting disabled."""
    yield from _make_client(backend)


@pytest.fixture(name="fake_client")
def fake_client_fixture(fake_backend: FakeBackend):
    """Test client wired to the in-memory fake backend."""
    yield from _make_client(fake_backend)
