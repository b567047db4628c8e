"""API routers."""

from .media import router as media_router
from .streaming import router as streaming_router
from .transcription import router as transcription_router

__all__ = ["media_router", "streaming_router", "transcription_router"]
