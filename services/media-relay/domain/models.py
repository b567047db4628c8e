"""Domain models for the media-relay service."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class JobState(str, Enum):
    """Lifecycle of a transcription job."""

    SUBMITTED = "SUBMITTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.FAILED, JobState.CANCELLED)


class StreamState(str, Enum):
    """Lifecycle of a viewer stream session."""

    STREAMING = "STREAMING"
    STOPPED = "STOPPED"
    ENDED = "ENDED"
    ERRORED = "ERRORED"


class BufferPolicy(str, Enum):
    """How the relay forwards chunks to a viewer."""

    CHUNK = "chunk"
    ACCUMULATE = "accumulate"


class TranscriptionMode(str, Enum):
    """When an upload hands its media to the transcription watcher."""

    OFF = "off"
    SYNC = "sync"
    ASYNC = "async"


class MediaObject(BaseModel, frozen=True):
    """A stored media object."""

    key: str
    size: int


class Utterance(BaseModel, frozen=True):
    """A single speaker utterance from transcription."""

    speaker: str
    text: str


class Transcript(BaseModel, frozen=True):
    """Parsed result of a completed transcription."""

    text: str
    utterances: list[Utterance] = Field(default_factory=list)


class JobHandle(BaseModel, frozen=True):
    """Reference to a job accepted by the transcription service."""

    job_name: str
    remote_id: str
    media_reference: str


class JobStatus(BaseModel, frozen=True):
    """Point-in-time status reported by the transcription service."""

    job_name: str
    state: JobState
    transcript_uri: str | None = None
    error: str | None = None


class TranscriptionJob(BaseModel):
    """A transcription job tracked by the watcher. Updated on every poll."""

    job_name: str
    media_key: str
    media_reference: str
    state: JobState = JobState.SUBMITTED
    transcript: Transcript | None = None
    error: str | None = None
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UploadResult(BaseModel, frozen=True):
    """Outcome of an accepted upload."""

    video_name: str
    mode: TranscriptionMode
    job: TranscriptionJob | None = None
