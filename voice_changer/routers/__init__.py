"""API routers."""

from voice_changer.routers.diagnostics import router as diagnostics_router
from voice_changer.routers.voice_files import router as voice_files_router

__all__ = ["diagnostics_router", "voice_files_router"]
