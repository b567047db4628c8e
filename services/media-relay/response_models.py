"""Response models for the media-relay API."""

from pydantic import BaseModel


class UploadResponse(BaseModel):
    """Response returned after a successful upload."""

    message: str
    video_name: str
    job_name: str | None = None
    status: str | None = None


class VideoEntry(BaseModel):
    """A stored video and where it can be fetched."""

    key: str
    url: str


class TranscribeResponse(BaseModel):
    """Response returned when a transcription job is started."""

    job_name: str
    status: str


class TranscriptionStatusResponse(BaseModel):
    """Current state of a watched transcription job."""

    job_name: str
    media_key: str
    status: str
    transcript: str | None = None
    error: str | None = None


class VideoInfoResponse(BaseModel):
    """Echo of a video name."""

    video_name: str
