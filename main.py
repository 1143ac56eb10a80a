"""Voice Changer - upload a clip and a text snippet, get the processed voice back."""

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from voice_changer.backend import get_backend
from voice_changer.backend.storage import PUBLIC_OBJECT_PREFIX
from voice_changer.config import get_settings
from voice_changer.dependencies import ClientSession, get_client_session, get_workflow, set_session_cookie
from voice_changer.errors import SubmissionError
from voice_changer.rate_limit import limiter
from voice_changer.routers import diagnostics_router, voice_files_router
from voice_changer.services.session import initialize_session
from voice_changer.services.submission import SubmissionWorkflow, read_upload

# Logging
logger = logging.getLogger("voice_changer")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    for warning in settings.validate():
        logger.warning(warning)
    # Established once per process; failures surface later as upload/insert errors
    app.state.session_result = initialize_session(get_backend(), settings.ANONYMOUS_EMAIL)
    yield


app = FastAPI(title="Voice Changer", version="0.1.0", lifespan=lifespan)
app.state.limiter = limiter


# --- Security headers middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self' 'unsafe-inline' 'unsafe-eval' https://cdn.tailwindcss.com https://unpkg.com; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:; "
            "media-src 'self' https:; "
            "connect-src 'self'; "
            "font-src 'self'"
        )
        return response


# --- Request size limit middleware ---
class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    MAX_BODY_SIZE = settings.max_upload_bytes + 1024 * 1024  # slightly above max upload

    async def dispatch(self, request: Request, call_next) -> Response:
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                length = int(content_length)
            except ValueError:
                return JSONResponse(status_code=400, content={"detail": "Invalid Content-Length header"})
            if length > self.MAX_BODY_SIZE:
                return JSONResponse(status_code=413, content={"detail": "Request body too large"})
        return await call_next(request)


# --- Audit logging middleware ---
class AuditLogMiddleware(BaseHTTPMiddleware):
    AUDIT_PATHS = {"/", "/api/v1/voice-files/"}

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000

        path = request.url.path
        if request.method == "POST" and path in self.AUDIT_PATHS:
            logger.info(
                "AUDIT %s %s -> %d (%.0fms) from %s",
                request.method,
                path,
                response.status_code,
                duration_ms,
                request.client.host if request.client else "unknown",
            )

        return response


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestSizeLimitMiddleware)
app.add_middleware(AuditLogMiddleware)

# Static files
app.mount("/static", StaticFiles(directory="static"), name="static")
if settings.STORAGE_BACKEND != "s3":
    # Public URLs of locally stored objects
    Path(settings.STORAGE_DIR).mkdir(parents=True, exist_ok=True)
    app.mount(PUBLIC_OBJECT_PREFIX, StaticFiles(directory=settings.STORAGE_DIR), name="storage")

# Templates
templates = Jinja2Templates(directory="templates")

# API routers
app.include_router(voice_files_router)
app.include_router(diagnostics_router)


# --- Rate limit error handler ---
@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Handle rate limit exceeded."""
    if request.url.path.startswith("/api/"):
        return JSONResponse(status_code=429, content={"detail": "Rate limit exceeded. Try again later."})
    return HTMLResponse(content="<h1>429</h1><p>Too many requests. Please try again later.</p>", status_code=429)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> Response:
    """JSON for API paths, minimal HTML for web pages."""
    if request.url.path.startswith("/api/"):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)
    return HTMLResponse(
        content=f"<h1>{exc.status_code}</h1><p>{exc.detail}</p>",
        status_code=exc.status_code,
    )


# --- Health check ---
@app.get("/api/health")
def health_check(request: Request) -> dict:
    """Health check endpoint."""
    session_result = getattr(request.app.state, "session_result", None)
    return {
        "status": "ok",
        "app": "voice-changer",
        "version": "0.1.0",
        "backend_session": bool(session_result and session_result.success),
    }


# --- Web routes ---
def _render(request: Request, workflow: SubmissionWorkflow, client: ClientSession, **extra) -> HTMLResponse:
    """Render the form page, or only the state partial for HTMX requests."""
    template = "partials/submission_state.html" if request.headers.get("HX-Request") else "index.html"
    context = {
        "state": workflow.state.value,
        "error": workflow.error,
        "public_url": workflow.download(),
        "in_flight": workflow.in_flight,
        "text": "",
        "max_upload_mb": settings.MAX_UPLOAD_SIZE_MB,
        "max_text_length": settings.MAX_TEXT_LENGTH,
    }
    context.update(extra)
    response = templates.TemplateResponse(request, template, context)
    set_session_cookie(response, client)
    return response


@app.get("/", response_class=HTMLResponse)
def index(
    request: Request,
    client: ClientSession = Depends(get_client_session),
    workflow: SubmissionWorkflow = Depends(get_workflow),
) -> HTMLResponse:
    """Render the voice changer form."""
    return _render(request, workflow, client)


@app.post("/", response_class=HTMLResponse)
async def submit_form(
    request: Request,
    file: UploadFile | None = File(None),
    text: str = Form(""),
    client: ClientSession = Depends(get_client_session),
    workflow: SubmissionWorkflow = Depends(get_workflow),
) -> HTMLResponse:
    """Handle the form submission and show the outcome."""
    audio = None
    if file is not None and file.filename:
        audio = await read_upload(file, settings.max_upload_bytes)

    try:
        await workflow.submit(audio, text)
    except SubmissionError as e:
        return _render(request, workflow, client, error=e.message, text=text)
    return _render(request, workflow, client)


@app.get("/download")
def download(workflow: SubmissionWorkflow = Depends(get_workflow)) -> RedirectResponse:
    """Send the browser to the processed voice, or back to the form if nothing is ready."""
    return RedirectResponse(url=workflow.download() or "/", status_code=303)
