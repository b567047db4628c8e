"""Domain layer exports."""

from .models import (
    BufferPolicy,
    JobHandle,
    JobState,
    JobStatus,
    MediaObject,
    StreamState,
    Transcript,
    TranscriptionJob,
    TranscriptionMode,
    UploadResult,
    Utterance,
)
from .naming import content_type_for, generate_job_name, generate_object_key

__all__ = [
    "BufferPolicy",
    "JobHandle",
    "JobState",
    "JobStatus",
    "MediaObject",
    "StreamState",
    "Transcript",
    "TranscriptionJob",
    "TranscriptionMode",
    "UploadResult",
    "Utterance",
    "content_type_for",
    "generate_job_name",
    "generate_object_key",
]
