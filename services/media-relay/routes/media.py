"""Upload, listing and playback endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Response, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, StreamingResponse
from media_common import setup_logging
from starlette.background import BackgroundTask

from dependencies import get_storage, get_upload_handler
from domain import TranscriptionMode, content_type_for
from exceptions import (
    ClientInputError,
    MediaRelayError,
    ObjectNotFound,
    RemoteServiceError,
)
from handlers import UploadHandler
from infrastructure.interfaces import StorageClient
from response_models import UploadResponse, VideoEntry, VideoInfoResponse

logger = setup_logging(__name__)

router = APIRouter(prefix="/api", tags=["media"])

StorageDep = Annotated[StorageClient, Depends(get_storage)]
UploadHandlerDep = Annotated[UploadHandler, Depends(get_upload_handler)]

PLAYBACK_CHUNK_SIZE = 64 * 1024


@router.post("/upload", response_model=UploadResponse, status_code=201)
async def upload_video(
    response: Response,
    handler: UploadHandlerDep,
    video: UploadFile | None = File(None),
    transcribe: TranscriptionMode | None = None,
):
    """
    Uploads a single video file.

    Stores the file in the object store and, depending on the transcription
    mode, waits for or schedules its transcription.
    """
    data = await video.read() if video is not None else None
    filename = video.filename if video is not None else None

    try:
        result = await handler.accept(filename, data, transcribe)
    except ClientInputError:
        logger.info("No file received")
        return JSONResponse(status_code=401, content={"message": "Please upload a video file"})
    except MediaRelayError:
        logger.exception("Error uploading video", extra={"file_name": filename})
        return JSONResponse(status_code=500, content={"error": "Error uploading video"})

    if result.mode is TranscriptionMode.ASYNC:
        response.status_code = 202

    return UploadResponse(
        message="Successfully uploaded video",
        video_name=result.video_name,
        job_name=result.job.job_name if result.job else None,
        status=result.job.state.value if result.job else None,
    )


@router.get("/videos", response_model=list[VideoEntry])
async def list_videos(storage: StorageDep):
    """Returns every stored video with its URL."""
    try:
        objects = await run_in_threadpool(storage.list)
    except RemoteServiceError:
        logger.exception("Error listing videos")
        return JSONResponse(status_code=500, content={"error": "Error listing videos"})

    if not objects:
        return JSONResponse(content={"message": "No videos found"})

    return [VideoEntry(key=obj.key, url=storage.object_url(obj.key)) for obj in objects]


@router.get("/play/{video_key}")
async def play_video(video_key: str, storage: StorageDep):
    """Streams a stored video with a Content-Type derived from its extension."""
    try:
        stream = await run_in_threadpool(storage.get, video_key)
    except ObjectNotFound:
        return JSONResponse(status_code=404, content={"error": "Video not found"})
    except RemoteServiceError:
        logger.exception("Error streaming video", extra={"key": video_key})
        return JSONResponse(status_code=500, content={"error": "Error streaming video"})

    return StreamingResponse(
        stream.iter_chunks(PLAYBACK_CHUNK_SIZE),
        media_type=content_type_for(video_key),
        background=BackgroundTask(stream.close),
    )


@router.get("/video-info/{video_filename}", response_model=VideoInfoResponse)
def video_info(video_filename: str):
    return VideoInfoResponse(video_name=video_filename)
