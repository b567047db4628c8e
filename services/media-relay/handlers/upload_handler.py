"""Handler for accepting uploaded media."""

import asyncio

from media_common import setup_logging

from domain import TranscriptionMode, UploadResult, content_type_for, generate_object_key
from exceptions import MissingPayload
from infrastructure.interfaces import StorageClient
from watcher import JobCompletionWatcher

logger = setup_logging(__name__)


class UploadHandler:
    """Stores uploaded media and optionally hands it to the watcher."""

    def __init__(
        self,
        storage: StorageClient,
        watcher: JobCompletionWatcher,
        default_mode: TranscriptionMode = TranscriptionMode.ASYNC,
    ):
        self._storage = storage
        self._watcher = watcher
        self._default_mode = default_mode

    async def accept(
        self,
        filename: str | None,
        data: bytes | None,
        mode: TranscriptionMode | None = None,
    ) -> UploadResult:
        """
        Stores a single media payload under a fresh key.

        With ``sync`` the call returns only after the transcription job has
        reached a terminal state. With ``async`` it returns as soon as the job
        is submitted and the job is watched in the background.

        Args:
            filename: Original file name, used to derive the key.
            data: The media bytes.
            mode: Transcription scheduling; the configured default when None.

        Returns:
            UploadResult with the stored key and the job, if one was started.

        Raises:
            MissingPayload: If no file or an empty file was sent.
            StoreUnavailable: If the store cannot be reached.
            StoreWriteDenied: If the store refuses the write.
            JobSubmissionRejected: If the transcription job is refused.
            TranscriptionTerminalFailure: If a sync transcription fails.
        """
        if not filename or not data:
            raise MissingPayload()

        mode = mode or self._default_mode
        key = generate_object_key(filename)

        logger.info(
            "Received upload request",
            extra={"file_name": filename, "object_name": key, "size": len(data), "mode": mode.value},
        )

        await asyncio.to_thread(self._storage.put, key, data, content_type_for(key))

        if mode is TranscriptionMode.OFF:
            return UploadResult(video_name=key, mode=mode)

        media_reference = await asyncio.to_thread(self._storage.presigned_url, key)
        if mode is TranscriptionMode.SYNC:
            job = await self._watcher.run(key, media_reference)
        else:
            job = await self._watcher.start_background(key, media_reference)

        logger.info(
            "Upload handed to transcription",
            extra={"object_name": key, "job_name": job.job_name, "state": job.state.value},
        )
        return UploadResult(video_name=key, mode=mode, job=job)
