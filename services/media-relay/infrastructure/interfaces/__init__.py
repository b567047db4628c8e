"""Infrastructure interface exports."""

from .storage import ObjectStream, StorageClient
from .transcription_service import TranscriptionService

__all__ = ["ObjectStream", "StorageClient", "TranscriptionService"]
