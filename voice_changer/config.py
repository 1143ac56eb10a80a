"""Configuration settings for Voice Changer."""

import os
import secrets
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Backend (metadata database + access key)
    BACKEND_URL: str = os.getenv("BACKEND_URL", "sqlite:///./voice_changer.db")
    BACKEND_KEY: str = os.getenv("BACKEND_KEY", "")
    METADATA_TABLE: str = os.getenv("METADATA_TABLE", "voice_files")

    # Object storage
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "local")  # local, s3
    STORAGE_BUCKET: str = os.getenv("STORAGE_BUCKET", "voice-files")
    STORAGE_DIR: str = os.getenv("STORAGE_DIR", "storage")
    PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")
    S3_ENDPOINT_URL: str = os.getenv("S3_ENDPOINT_URL", "")
    S3_ACCESS_KEY: str = os.getenv("S3_ACCESS_KEY", "")
    S3_SECRET_KEY: str = os.getenv("S3_SECRET_KEY", "")
    S3_REGION: str = os.getenv("S3_REGION", "us-east-1")

    # Sessions
    ANONYMOUS_EMAIL: str = os.getenv("ANONYMOUS_EMAIL", "anonymous@example.com")
    SESSION_SECRET_KEY: str = os.getenv("SESSION_SECRET_KEY", secrets.token_urlsafe(32))
    SESSION_ALGORITHM: str = os.getenv("SESSION_ALGORITHM", "HS256")
    SESSION_EXPIRE_MINUTES: int = int(os.getenv("SESSION_EXPIRE_MINUTES", "480"))

    # Submission limits
    MAX_UPLOAD_SIZE_MB: int = int(os.getenv("MAX_UPLOAD_SIZE_MB", "5"))
    MAX_TEXT_LENGTH: int = int(os.getenv("MAX_TEXT_LENGTH", "500"))
    PROCESSING_DELAY_SECONDS: float = float(os.getenv("PROCESSING_DELAY_SECONDS", "2"))
    MAX_CLIENT_WORKFLOWS: int = int(os.getenv("MAX_CLIENT_WORKFLOWS", "1000"))

    # Application
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    def validate(self) -> list[str]:
        """Validate settings and return list of warnings."""
        warnings = []
        if not self.BACKEND_KEY:
            warnings.append("BACKEND_KEY is not set - anonymous sign-in and all uploads will fail")
        if self.STORAGE_BACKEND not in ("local", "s3"):
            warnings.append(f"Unknown STORAGE_BACKEND '{self.STORAGE_BACKEND}' - falling back to local storage")
        if self.STORAGE_BACKEND == "s3" and not (self.S3_ACCESS_KEY and self.S3_SECRET_KEY):
            warnings.append("S3_ACCESS_KEY / S3_SECRET_KEY are not set - S3 uploads will fail")
        return warnings

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
