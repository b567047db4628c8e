"""Infrastructure layer exports."""

from .assemblyai_transcriber import AssemblyAITranscriber
from .minio_storage import MinioObjectStream, MinioStorage

__all__ = ["AssemblyAITranscriber", "MinioObjectStream", "MinioStorage"]
