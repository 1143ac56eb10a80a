"""Client session dependencies for FastAPI routes."""

import uuid
from dataclasses import dataclass

from fastapi import Depends, Request, Response

from voice_changer.backend import BackendClient, get_backend
from voice_changer.services.jwt import get_jwt_service
from voice_changer.services.submission import SubmissionWorkflow, get_workflow_registry

SESSION_COOKIE_NAME = "vc_session"
COOKIE_MAX_AGE = 8 * 60 * 60  # 8 hours


@dataclass
class ClientSession:
    """Anonymous browser/API client identity."""

    client_id: str
    token: str
    is_new: bool = False


def get_client_session(request: Request) -> ClientSession:
    """Read the client id from the session cookie, issuing a new one if missing or invalid."""
    jwt_service = get_jwt_service()
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if token:
        payload = jwt_service.decode_token(token)
        if payload and payload.get("sub"):
            return ClientSession(client_id=payload["sub"], token=token)

    client_id = str(uuid.uuid4())
    token, _ = jwt_service.create_token(client_id)
    return ClientSession(client_id=client_id, token=token, is_new=True)


def get_workflow(
    client: ClientSession = Depends(get_client_session),
    backend: BackendClient = Depends(get_backend),
) -> SubmissionWorkflow:
    """Submission workflow owned by the calling client."""
    return get_workflow_registry().get(client.client_id, backend)


def set_session_cookie(response: Response, client: ClientSession) -> None:
    """Set the session cookie when the client id was just issued."""
    if not client.is_new:
        return
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=client.token,
        httponly=True,
        samesite="lax",
        secure=False,
        max_age=COOKIE_MAX_AGE,
    )
