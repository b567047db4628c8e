"""FastAPI dependency injection configuration."""

from functools import lru_cache

import assemblyai as aai
from media_common import setup_logging
from minio import Minio

from config import AppConfig, load_config
from handlers import UploadHandler
from infrastructure import AssemblyAITranscriber, MinioStorage
from infrastructure.interfaces import StorageClient, TranscriptionService
from relay import SessionManager, StreamingRelay
from watcher import JobCompletionWatcher

logger = setup_logging(__name__)


@lru_cache
def get_config() -> AppConfig:
    """Returns the configuration, loading it on first use."""
    return load_config()


@lru_cache
def get_storage() -> StorageClient:
    """Returns the configured object store client."""
    config = get_config()
    client = Minio(
        endpoint=config.minio.endpoint,
        access_key=config.minio.access_key,
        secret_key=config.minio.secret_key,
        secure=config.minio.secure,
        region=config.minio.region,
    )
    storage = MinioStorage(client, config.minio)
    storage.ensure_bucket_exists()
    return storage


@lru_cache
def get_transcription_service() -> TranscriptionService:
    """Returns the configured transcription service."""
    config = get_config()
    aai.settings.api_key = config.assemblyai.api_key
    logger.info(
        "Transcription service configured",
        extra={"speaker_labels": config.assemblyai.speaker_labels},
    )
    return AssemblyAITranscriber(
        aai.Transcriber(),
        speaker_labels=config.assemblyai.speaker_labels,
    )


@lru_cache
def get_watcher() -> JobCompletionWatcher:
    """Returns the process-wide job completion watcher."""
    return JobCompletionWatcher(get_transcription_service(), get_config().transcription)


@lru_cache
def get_session_manager() -> SessionManager:
    """Returns the process-wide stream session table."""
    return SessionManager()


@lru_cache
def get_relay() -> StreamingRelay:
    """Returns the configured streaming relay."""
    return StreamingRelay(
        get_storage(),
        get_watcher(),
        get_session_manager(),
        get_config().relay,
    )


@lru_cache
def get_upload_handler() -> UploadHandler:
    """Returns the configured upload handler."""
    return UploadHandler(
        get_storage(),
        get_watcher(),
        get_config().upload.transcription_mode,
    )
