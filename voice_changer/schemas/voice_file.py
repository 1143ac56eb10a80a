"""Pydantic schemas for voice file endpoints."""

from datetime import datetime

from pydantic import BaseModel


class VoiceFileRecord(BaseModel):
    id: int
    original_filename: str
    text_input: str
    status: str
    processed_filename: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class SubmissionResponse(VoiceFileRecord):
    public_url: str
    state: str


class SubmissionStateResponse(BaseModel):
    state: str
    error: str | None
    public_url: str | None


class ConnectionCheckResponse(BaseModel):
    success: bool
    data: list[VoiceFileRecord] | None = None
    error: str | None = None
