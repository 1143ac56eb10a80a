"""Backend client built from a SQL metadata store, an object store and JWT sessions."""

import logging
import uuid
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from voice_changer.backend.base import AnonymousSession, BackendClient
from voice_changer.backend.storage import ObjectStorage
from voice_changer.database import Base
from voice_changer.errors import BackendError
from voice_changer.models.voice_file import VoiceFile
from voice_changer.services.jwt import JWTService

logger = logging.getLogger("voice_changer")

DEFAULT_TABLES: dict[str, type[Base]] = {VoiceFile.__tablename__: VoiceFile}


def _row_to_dict(row: Base) -> dict[str, Any]:
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}


def _db_message(error: SQLAlchemyError) -> str:
    orig = getattr(error, "orig", None)
    return str(orig) if orig is not None else str(error)


class HostedBackend(BackendClient):
    """Writes to storage and the metadata table require an anonymous session.

    Sessions are tokens signed with the backend access key, so a missing key
    shows up as a failed sign-in and then as failed writes. An expired
    session is replaced by a fresh anonymous sign-in on the next write.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        storage: ObjectStorage,
        jwt_service: JWTService,
        tables: dict[str, type[Base]] | None = None,
        anonymous_email: str = "anonymous@example.com",
    ) -> None:
        self._anonymous_email = anonymous_email
        self._session_factory = session_factory
        self._storage = storage
        self._jwt = jwt_service
        self._tables = tables or DEFAULT_TABLES
        self._session: AnonymousSession | None = None

    # -- Auth -----------------------------------------------------------------

    def get_session(self) -> AnonymousSession | None:
        if self._session is None:
            return None
        if not self._jwt.is_token_valid(self._session.access_token):
            logger.info("Anonymous session %s expired", self._session.session_id)
            self._session = None
        return self._session

    def sign_in_anonymously(self, email: str) -> AnonymousSession:
        if not self._jwt.secret_key:
            raise BackendError("Invalid API key")
        session_id = str(uuid.uuid4())
        token, expires_at = self._jwt.create_token(session_id, email=email)
        self._session = AnonymousSession(
            session_id=session_id,
            email=email,
            access_token=token,
            expires_at=expires_at,
        )
        return self._session

    def _require_session(self) -> None:
        if self.get_session() is not None:
            return
        try:
            self.sign_in_anonymously(self._anonymous_email)
        except BackendError as e:
            logger.warning("Anonymous re-sign-in failed: %s", e.message)
            raise BackendError("Not authenticated") from e

    # -- Storage --------------------------------------------------------------

    def upload(self, bucket: str, path: str, data: bytes, content_type: str | None = None) -> str:
        self._require_session()
        self._storage.put(bucket, path, data, content_type)
        return path

    def get_public_url(self, bucket: str, path: str) -> str | None:
        return self._storage.public_url(bucket, path)

    # -- Tables ---------------------------------------------------------------

    def _model(self, table: str, values: dict[str, Any] | None = None) -> type[Base]:
        model = self._tables.get(table)
        if model is None:
            raise BackendError(f'relation "{table}" does not exist')
        if values:
            columns = set(model.__table__.columns.keys())
            for key in values:
                if key not in columns:
                    raise BackendError(f"Could not find the '{key}' column of '{table}'")
        return model

    def insert(self, table: str, values: dict[str, Any]) -> dict[str, Any]:
        self._require_session()
        model = self._model(table, values)
        try:
            with self._session_factory() as db:
                row = model(**values)
                db.add(row)
                db.commit()
                db.refresh(row)
                return _row_to_dict(row)
        except SQLAlchemyError as e:
            raise BackendError(_db_message(e)) from e

    def update(self, table: str, record_id: int, values: dict[str, Any]) -> dict[str, Any]:
        self._require_session()
        model = self._model(table, values)
        try:
            with self._session_factory() as db:
                row = db.get(model, record_id)
                if row is None:
                    raise BackendError(f"No row in '{table}' with id {record_id}")
                for key, value in values.items():
                    setattr(row, key, value)
                db.commit()
                db.refresh(row)
                return _row_to_dict(row)
        except SQLAlchemyError as e:
            raise BackendError(_db_message(e)) from e

    def select(self, table: str) -> list[dict[str, Any]]:
        model = self._model(table)
        try:
            with self._session_factory() as db:
                return [_row_to_dict(row) for row in db.query(model).order_by(model.id).all()]
        except SQLAlchemyError as e:
            raise BackendError(_db_message(e)) from e
