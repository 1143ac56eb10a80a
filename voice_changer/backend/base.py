"""Capability set the workflow and diagnostics expect from the backend."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass
class AnonymousSession:
    """Backend identity established without user-supplied credentials."""

    session_id: str
    email: str | None
    access_token: str
    expires_at: datetime


class BackendClient(ABC):
    """Storage bucket, metadata table and anonymous auth behind one object.

    Every method raises ``BackendError`` carrying the backend's message on failure.
    """

    @abstractmethod
    def get_session(self) -> AnonymousSession | None:
        """Return the current session, or None if there is no valid one."""

    @abstractmethod
    def sign_in_anonymously(self, email: str) -> AnonymousSession:
        """Establish a passwordless session for the given placeholder email."""

    @abstractmethod
    def upload(self, bucket: str, path: str, data: bytes, content_type: str | None = None) -> str:
        """Store ``data`` at ``path`` in ``bucket``. Returns the stored path."""

    @abstractmethod
    def get_public_url(self, bucket: str, path: str) -> str | None:
        """Resolve an unauthenticated URL for an object, or None if it cannot be resolved."""

    @abstractmethod
    def insert(self, table: str, values: dict[str, Any]) -> dict[str, Any]:
        """Insert a row and return it as stored, including its ``id``."""

    @abstractmethod
    def update(self, table: str, record_id: int, values: dict[str, Any]) -> dict[str, Any]:
        """Update the row with ``record_id`` and return it as stored."""

    @abstractmethod
    def select(self, table: str) -> list[dict[str, Any]]:
        """Return every row of ``table``."""
