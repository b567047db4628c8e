"""Transcription endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from media_common import setup_logging

from dependencies import get_storage, get_watcher
from exceptions import RemoteServiceError
from infrastructure.interfaces import StorageClient
from response_models import TranscribeResponse, TranscriptionStatusResponse
from watcher import JobCompletionWatcher

logger = setup_logging(__name__)

router = APIRouter(prefix="/api", tags=["transcription"])

StorageDep = Annotated[StorageClient, Depends(get_storage)]
WatcherDep = Annotated[JobCompletionWatcher, Depends(get_watcher)]


@router.get("/transcribe/{video_filename}", response_model=TranscribeResponse)
async def transcribe_video(video_filename: str, storage: StorageDep, watcher: WatcherDep):
    """
    Starts transcribing a stored video.

    The job is watched in the background; its progress is available from
    the transcription status endpoint.
    """
    try:
        media_reference = await run_in_threadpool(storage.presigned_url, video_filename)
        job = await watcher.start_background(video_filename, media_reference)
    except RemoteServiceError:
        logger.exception("Error starting transcription", extra={"key": video_filename})
        return JSONResponse(status_code=500, content={"error": "Error starting transcription"})

    return TranscribeResponse(job_name=job.job_name, status=job.state.value)


@router.get("/transcriptions/{job_name}", response_model=TranscriptionStatusResponse)
def get_transcription(job_name: str, watcher: WatcherDep):
    """Returns the latest known state of a transcription job."""
    job = watcher.get_job(job_name)
    if job is None:
        return JSONResponse(status_code=404, content={"error": "Transcription job not found"})

    return TranscriptionStatusResponse(
        job_name=job.job_name,
        media_key=job.media_key,
        status=job.state.value,
        transcript=job.transcript.text if job.transcript else None,
        error=job.error,
    )
