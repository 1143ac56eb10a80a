"""Diagnostic endpoint dumping the metadata table."""

import logging

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from voice_changer.backend import BackendClient, get_backend
from voice_changer.config import get_settings
from voice_changer.errors import BackendError
from voice_changer.schemas.voice_file import ConnectionCheckResponse, VoiceFileRecord

logger = logging.getLogger("voice_changer")

router = APIRouter(prefix="/api", tags=["Diagnostics"])


def _failure(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"success": False, "error": message})


@router.get("/test-connection", response_model=ConnectionCheckResponse)
def test_connection(backend: BackendClient = Depends(get_backend)) -> JSONResponse:
    """Return every row of the metadata table. Debug aid, no auth."""
    try:
        rows = backend.select(get_settings().METADATA_TABLE)
        data = [VoiceFileRecord.model_validate(row) for row in rows]
    except BackendError as e:
        return _failure(e.message)
    except Exception as e:
        logger.exception("Connection check failed")
        return _failure(str(e))

    return JSONResponse(status_code=200, content={"success": True, "data": jsonable_encoder(data)})
