"""Object storage adapters: local filesystem and S3-compatible via boto3."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from urllib.parse import quote

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from voice_changer.errors import BackendError

logger = logging.getLogger("voice_changer")

PUBLIC_OBJECT_PREFIX = "/storage/v1/object/public"


def normalize_object_path(path: str) -> str:
    """Reject paths that are empty, absolute or escape the bucket."""
    pure = PurePosixPath(path)
    if not path or pure.is_absolute() or any(part in ("", ".", "..") for part in pure.parts):
        raise BackendError(f"Invalid object path '{path}'")
    return str(pure)


class ObjectStorage(ABC):
    """Binary objects addressed by bucket + path."""

    @abstractmethod
    def put(self, bucket: str, path: str, data: bytes, content_type: str | None = None) -> None: ...

    @abstractmethod
    def public_url(self, bucket: str, path: str) -> str | None: ...


class LocalStorage(ObjectStorage):
    """Buckets are directories under ``root``; objects are served from ``PUBLIC_OBJECT_PREFIX``."""

    def __init__(self, root: str | Path, public_base_url: str) -> None:
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    def put(self, bucket: str, path: str, data: bytes, content_type: str | None = None) -> None:
        key = normalize_object_path(path)
        file_path = self.root / bucket / key
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            # Same path overwrites the previous object
            file_path.write_bytes(data)
        except OSError as e:
            raise BackendError(str(e)) from e

    def public_url(self, bucket: str, path: str) -> str | None:
        try:
            key = normalize_object_path(path)
        except BackendError:
            return None
        return f"{self.public_base_url}{PUBLIC_OBJECT_PREFIX}/{quote(bucket)}/{quote(key)}"


class S3Storage(ObjectStorage):
    """S3-compatible storage; each bucket name maps to an S3 bucket."""

    def __init__(
        self,
        access_key: str,
        secret_key: str,
        endpoint_url: str | None = None,
        region: str = "us-east-1",
        client=None,
    ) -> None:
        self.access_key = access_key
        self.secret_key = secret_key
        self.endpoint_url = (endpoint_url or "").rstrip("/")
        self.region = region
        self._client = client

    @property
    def is_configured(self) -> bool:
        """Check if credentials are set."""
        return bool(self.access_key and self.secret_key)

    @property
    def client(self):
        """Lazy-init the boto3 S3 client."""
        if self._client is None:
            if not self.is_configured:
                raise BackendError("Storage not configured. Set S3_ACCESS_KEY and S3_SECRET_KEY.")
            self._client = boto3.client(
                "s3",
                aws_access_key_id=self.access_key,
                aws_secret_access_key=self.secret_key,
                endpoint_url=self.endpoint_url or None,
                region_name=self.region,
                config=BotoConfig(signature_version="s3v4"),
            )
        return self._client

    def put(self, bucket: str, path: str, data: bytes, content_type: str | None = None) -> None:
        key = normalize_object_path(path)
        try:
            self.client.put_object(
                Bucket=bucket,
                Key=key,
                Body=data,
                ContentType=content_type or "application/octet-stream",
            )
        except ClientError as e:
            raise BackendError(e.response.get("Error", {}).get("Message") or str(e)) from e
        except BotoCoreError as e:
            raise BackendError(str(e)) from e

    def public_url(self, bucket: str, path: str) -> str | None:
        try:
            key = normalize_object_path(path)
        except BackendError:
            return None
        if self.endpoint_url:
            return f"{self.endpoint_url}/{quote(bucket)}/{quote(key)}"
        return f"https://{bucket}.s3.{self.region}.amazonaws.com/{quote(key)}"
