"""Key, job-name and content-type helpers."""

import os
import time
import uuid

DEFAULT_CONTENT_TYPE = "application/octet-stream"

_CONTENT_TYPES = {
    "mp4": "video/mp4",
    "webm": "video/webm",
}


def _disambiguator() -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


def generate_object_key(filename: str) -> str:
    """
    Derives a unique object key from an uploaded file name.

    Directory components are dropped so the key is a single path segment
    that still ends with the original base name, e.g.
    ``1718035200000-1f2e3d4c-clip.webm``.
    """
    base_name = os.path.basename(filename.replace("\\", "/")).strip() or "upload"
    return f"{_disambiguator()}-{base_name}"


def generate_job_name() -> str:
    """Returns a transcription job name that is unique within the process."""
    return f"TranscriptionJob_{_disambiguator().replace('-', '_')}"


def content_type_for(key: str) -> str:
    """Maps a key's file extension to the Content-Type used for playback."""
    _, extension = os.path.splitext(key)
    return _CONTENT_TYPES.get(extension.lstrip(".").lower(), DEFAULT_CONTENT_TYPE)
