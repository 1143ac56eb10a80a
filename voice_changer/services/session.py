"""Anonymous backend session initialization."""

import logging
from dataclasses import dataclass

from voice_changer.backend.base import AnonymousSession, BackendClient
from voice_changer.errors import BackendError

logger = logging.getLogger("voice_changer")


@dataclass
class SessionResult:
    """Result of establishing the backend session."""

    success: bool
    session: AnonymousSession | None = None
    created: bool = False
    error: str | None = None


def initialize_session(backend: BackendClient, email: str) -> SessionResult:
    """Reuse the backend's current session or sign in anonymously.

    Never raises for backend failures: the failure is returned and later
    storage/table calls report it.
    """
    try:
        session = backend.get_session()
        if session is not None:
            return SessionResult(success=True, session=session)
        session = backend.sign_in_anonymously(email)
    except BackendError as e:
        logger.warning("Anonymous sign-in failed: %s", e.message)
        return SessionResult(success=False, error=e.message)

    logger.info("Anonymous session %s established", session.session_id)
    return SessionResult(success=True, session=session, created=True)
