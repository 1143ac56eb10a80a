"""Storage/database backend client."""

from voice_changer.backend.base import AnonymousSession, BackendClient
from voice_changer.backend.hosted import HostedBackend
from voice_changer.backend.storage import LocalStorage, ObjectStorage, S3Storage
from voice_changer.config import Settings, get_settings
from voice_changer.database import build_engine, build_session_factory
from voice_changer.services.jwt import JWTService

__all__ = [
    "AnonymousSession",
    "BackendClient",
    "HostedBackend",
    "LocalStorage",
    "ObjectStorage",
    "S3Storage",
    "build_backend",
    "get_backend",
    "set_backend",
]


def build_storage(settings: Settings) -> ObjectStorage:
    """Pick the object store named by STORAGE_BACKEND."""
    if settings.STORAGE_BACKEND == "s3":
        return S3Storage(
            access_key=settings.S3_ACCESS_KEY,
            secret_key=settings.S3_SECRET_KEY,
            endpoint_url=settings.S3_ENDPOINT_URL,
            region=settings.S3_REGION,
        )
    return LocalStorage(settings.STORAGE_DIR, settings.PUBLIC_BASE_URL)


def build_backend(settings: Settings) -> HostedBackend:
    """Create a backend client from settings."""
    engine = build_engine(settings.BACKEND_URL, echo=settings.DEBUG)
    return HostedBackend(
        session_factory=build_session_factory(engine),
        storage=build_storage(settings),
        jwt_service=JWTService(settings.BACKEND_KEY, expire_minutes=settings.SESSION_EXPIRE_MINUTES),
        anonymous_email=settings.ANONYMOUS_EMAIL,
    )


_backend: BackendClient | None = None


def get_backend() -> BackendClient:
    """Get the process-wide backend client, building it from settings on first use."""
    global _backend
    if _backend is None:
        _backend = build_backend(get_settings())
    return _backend


def set_backend(backend: BackendClient | None) -> None:
    """Replace the backend client (None resets to the settings-built default)."""
    global _backend
    _backend = backend
