"""Voice file submission API endpoints."""

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, Response, UploadFile
from fastapi.responses import JSONResponse, RedirectResponse

from voice_changer.config import get_settings
from voice_changer.dependencies import ClientSession, get_client_session, get_workflow, set_session_cookie
from voice_changer.errors import SubmissionError, SubmissionInProgressError, UnknownError, ValidationError
from voice_changer.rate_limit import limiter
from voice_changer.schemas.voice_file import SubmissionResponse, SubmissionStateResponse
from voice_changer.services.submission import SubmissionWorkflow, read_upload

router = APIRouter(prefix="/api/v1/voice-files", tags=["Voice Files"])


def _status_code_for(error: SubmissionError) -> int:
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, SubmissionInProgressError):
        return 409
    if isinstance(error, UnknownError):
        return 500
    return 502


@router.post("/", response_model=SubmissionResponse)
@limiter.limit("20/minute")
async def submit_voice_file(
    request: Request,
    response: Response,
    file: UploadFile | None = File(None),
    text: str = Form(""),
    client: ClientSession = Depends(get_client_session),
    workflow: SubmissionWorkflow = Depends(get_workflow),
) -> SubmissionResponse | JSONResponse:
    """Upload a clip with its text and run the (simulated) conversion."""
    set_session_cookie(response, client)
    audio = await read_upload(file, get_settings().max_upload_bytes) if file is not None else None

    try:
        result = await workflow.submit(audio, text)
    except SubmissionError as e:
        # Raised HTTPExceptions drop the injected response, and with it the cookie
        error_response = JSONResponse(status_code=_status_code_for(e), content={"detail": e.message})
        set_session_cookie(error_response, client)
        return error_response

    return SubmissionResponse(**result.record, public_url=result.public_url, state=workflow.state.value)


@router.get("/state", response_model=SubmissionStateResponse)
def get_submission_state(
    response: Response,
    client: ClientSession = Depends(get_client_session),
    workflow: SubmissionWorkflow = Depends(get_workflow),
) -> SubmissionStateResponse:
    """Current submission state of the calling client."""
    set_session_cookie(response, client)
    return SubmissionStateResponse(state=workflow.state.value, error=workflow.error, public_url=workflow.public_url)


@router.get("/download")
def download_voice_file(workflow: SubmissionWorkflow = Depends(get_workflow)) -> RedirectResponse:
    """Redirect to the resolved audio URL."""
    url = workflow.download()
    if not url:
        raise HTTPException(status_code=404, detail="No processed audio available")
    return RedirectResponse(url=url, status_code=307)
