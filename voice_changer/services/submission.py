"""Submission workflow: validate, upload, record, simulate processing, resolve a download URL."""

import enum
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from voice_changer.backend.base import BackendClient
from voice_changer.config import get_settings
from voice_changer.errors import (
    BackendError,
    PersistError,
    SubmissionError,
    SubmissionInProgressError,
    UnknownError,
    UpdateError,
    UploadError,
    UrlError,
    ValidationError,
)
from voice_changer.models.voice_file import STATUS_COMPLETED, STATUS_PROCESSING
from voice_changer.services.processing import simulate_voice_conversion

logger = logging.getLogger("voice_changer")

INPUT_PREFIX = "input"


class SubmissionState(str, enum.Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    UPLOADING = "uploading"
    PERSISTING_METADATA = "persisting_metadata"
    SIMULATING_PROCESSING = "simulating_processing"
    UPDATING_METADATA = "updating_metadata"
    RESOLVING_URL = "resolving_url"
    READY = "ready"
    ERROR = "error"


@dataclass
class AudioFile:
    """Candidate file as received from the client.

    ``size`` counts every byte the client sent, ``data`` may be cut short once
    the size limit is exceeded.
    """

    name: str
    content_type: str | None
    data: bytes = b""
    size: int = -1

    def __post_init__(self) -> None:
        if self.size < 0:
            self.size = len(self.data)


@dataclass
class SubmissionResult:
    record: dict[str, Any]
    public_url: str


def check_file(file: AudioFile | None, max_bytes: int) -> str | None:
    """Validate a candidate file. Returns error message or None if valid."""
    if file is None or not file.name:
        return "Please upload a voice file."
    if file.size > max_bytes:
        return f"File is too large. Please upload a file smaller than {max_bytes // (1024 * 1024)}MB."
    if not (file.content_type or "").startswith("audio/"):
        return "Invalid file type. Please upload an audio file."
    return None


def check_text(text: str | None, max_length: int) -> str | None:
    """Validate the text snippet. Returns error message or None if valid."""
    if not text:
        return "Please enter some text."
    if len(text) > max_length:
        return f"Text is too long. Please limit to {max_length} characters."
    return None


async def read_upload(upload: UploadFile, max_bytes: int) -> AudioFile:
    """Read an upload in chunks, keeping at most ``max_bytes`` but counting everything."""
    chunk_size = 1024 * 64
    kept = bytearray()
    size = 0
    while True:
        chunk = await upload.read(chunk_size)
        if not chunk:
            break
        size += len(chunk)
        if size <= max_bytes:
            kept.extend(chunk)
    return AudioFile(name=upload.filename or "", content_type=upload.content_type, data=bytes(kept), size=size)


@dataclass
class SubmissionWorkflow:
    """Per-client submission state machine.

    A failed attempt leaves any URL resolved by an earlier attempt in place,
    so download stays possible while the new error is displayed.
    """

    backend: BackendClient
    bucket: str = "voice-files"
    table: str = "voice_files"
    max_file_bytes: int = 5 * 1024 * 1024
    max_text_length: int = 500
    processing_delay: float = 2.0

    state: SubmissionState = SubmissionState.IDLE
    error: str | None = None
    public_url: str | None = None
    record: dict[str, Any] | None = None
    transitions: list[SubmissionState] = field(default_factory=list)
    _in_flight: bool = field(default=False, init=False, repr=False)

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def _enter(self, state: SubmissionState) -> None:
        self.state = state
        self.transitions.append(state)

    def _fail(self, error: SubmissionError) -> SubmissionError:
        self.error = error.message
        self._enter(SubmissionState.ERROR)
        return error

    def validate_file(self, file: AudioFile | None) -> None:
        message = check_file(file, self.max_file_bytes)
        if message:
            raise self._fail(ValidationError(message))

    def validate_text(self, text: str | None) -> None:
        message = check_text(text, self.max_text_length)
        if message:
            raise self._fail(ValidationError(message))

    async def submit(self, file: AudioFile | None, text: str | None) -> SubmissionResult:
        if self._in_flight:
            raise SubmissionInProgressError()
        self._in_flight = True
        try:
            return await self._run(file, text)
        finally:
            self._in_flight = False

    async def _run(self, file: AudioFile | None, text: str | None) -> SubmissionResult:
        self.transitions = []
        self.error = None
        self._enter(SubmissionState.IDLE)

        self._enter(SubmissionState.VALIDATING)
        self.validate_file(file)
        self.validate_text(text)

        path = f"{INPUT_PREFIX}/{file.name}"
        try:
            self._enter(SubmissionState.UPLOADING)
            await self._call(UploadError, self.backend.upload, self.bucket, path, file.data, file.content_type)

            self._enter(SubmissionState.PERSISTING_METADATA)
            record = await self._call(
                PersistError,
                self.backend.insert,
                self.table,
                {"original_filename": file.name, "text_input": text, "status": STATUS_PROCESSING},
            )
            if not record or record.get("id") is None:
                raise PersistError(f"{PersistError.prefix}no record returned")
            self.record = record

            self._enter(SubmissionState.SIMULATING_PROCESSING)
            processed_filename = await simulate_voice_conversion(file.name, self.processing_delay)

            self._enter(SubmissionState.UPDATING_METADATA)
            self.record = await self._call(
                UpdateError,
                self.backend.update,
                self.table,
                record["id"],
                {"processed_filename": processed_filename, "status": STATUS_COMPLETED},
            )

            self._enter(SubmissionState.RESOLVING_URL)
            url = await self._call(UrlError, self.backend.get_public_url, self.bucket, path)
            if not url:
                raise UrlError()
        except SubmissionError as e:
            logger.error("Error processing file %s: %s", file.name, e.message)
            self._fail(e)
            raise
        except Exception as e:
            logger.exception("Error processing file %s", file.name)
            raise self._fail(UnknownError()) from e

        self.public_url = url
        self._enter(SubmissionState.READY)
        logger.info("Submission %s ready: %s", self.record["id"], url)
        return SubmissionResult(record=self.record, public_url=url)

    @staticmethod
    async def _call(error_cls: type[SubmissionError], func, *args):
        try:
            return await run_in_threadpool(func, *args)
        except BackendError as e:
            raise error_cls.from_backend(e) from e

    def download(self) -> str | None:
        """URL of the last resolved file, or None if nothing is ready."""
        return self.public_url


class WorkflowRegistry:
    """Workflows keyed by anonymous client id, least recently used dropped first."""

    def __init__(self, max_size: int = 1000) -> None:
        self.max_size = max_size
        self._workflows: OrderedDict[str, SubmissionWorkflow] = OrderedDict()

    def get(self, client_id: str, backend: BackendClient) -> SubmissionWorkflow:
        workflow = self._workflows.get(client_id)
        if workflow is not None:
            self._workflows.move_to_end(client_id)
            return workflow

        settings = get_settings()
        workflow = SubmissionWorkflow(
            backend=backend,
            bucket=settings.STORAGE_BUCKET,
            table=settings.METADATA_TABLE,
            max_file_bytes=settings.max_upload_bytes,
            max_text_length=settings.MAX_TEXT_LENGTH,
            processing_delay=settings.PROCESSING_DELAY_SECONDS,
        )
        self._workflows[client_id] = workflow
        while len(self._workflows) > self.max_size:
            evicted = next((key for key, wf in self._workflows.items() if key != client_id and not wf.in_flight), None)
            if evicted is None:
                break
            del self._workflows[evicted]
        return workflow

    def clear(self) -> None:
        self._workflows.clear()

    def __len__(self) -> int:
        return len(self._workflows)


_workflow_registry: WorkflowRegistry | None = None


def get_workflow_registry() -> WorkflowRegistry:
    """Get singleton workflow registry."""
    global _workflow_registry
    if _workflow_registry is None:
        _workflow_registry = WorkflowRegistry(get_settings().MAX_CLIENT_WORKFLOWS)
    return _workflow_registry
