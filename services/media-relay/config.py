"""Application configuration loaded from environment variables."""

import os

from media_common import MinioConfig
from pydantic import BaseModel, Field, ValidationError

from domain import BufferPolicy, TranscriptionMode
from exceptions import ConfigurationError


class AssemblyAIConfig(BaseModel, frozen=True):
    """AssemblyAI API configuration."""

    api_key: str = Field(min_length=1)
    speaker_labels: bool = True


class TranscriptionConfig(BaseModel, frozen=True):
    """Job parameters and polling behaviour for transcription."""

    language_code: str = "en-US"
    sample_rate: int = 44100
    media_format: str = "webm"
    poll_interval: float = Field(default=5.0, ge=0)
    max_wait: float = Field(default=3600.0, ge=0)
    max_tracked_jobs: int = Field(default=1000, gt=0)


class RelayConfig(BaseModel, frozen=True):
    """Streaming relay configuration."""

    policy: BufferPolicy = BufferPolicy.CHUNK
    chunk_size: int = Field(default=64 * 1024, gt=0)
    max_buffer_bytes: int = Field(default=64 * 1024 * 1024, gt=0)


class UploadConfig(BaseModel, frozen=True):
    """Upload intake configuration."""

    transcription_mode: TranscriptionMode = TranscriptionMode.ASYNC


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    minio: MinioConfig
    assemblyai: AssemblyAIConfig
    transcription: TranscriptionConfig = TranscriptionConfig()
    relay: RelayConfig = RelayConfig()
    upload: UploadConfig = UploadConfig()
    port: int = 3009
    log_level: str = "INFO"


def load_config() -> AppConfig:
    """
    Loads configuration from environment variables.

    Raises:
        ConfigurationError: If a required variable is missing or a value
            cannot be parsed.
    """
    try:
        return AppConfig(
            minio=MinioConfig(
                endpoint=os.getenv("S3_ENDPOINT", "s3.amazonaws.com"),
                access_key=os.getenv("AWS_ACCESS_KEY_ID", ""),
                secret_key=os.getenv("AWS_SECRET_ACCESS_KEY", ""),
                bucket_name=os.getenv("S3_BUCKET", ""),
                region=os.getenv("S3_REGION") or None,
                secure=os.getenv("S3_SECURE", "true"),
                presign_expiry_seconds=os.getenv("S3_PRESIGN_EXPIRY_SECONDS", "3600"),
            ),
            assemblyai=AssemblyAIConfig(
                api_key=os.getenv("ASSEMBLYAI_API_KEY", ""),
            ),
            transcription=TranscriptionConfig(
                language_code=os.getenv("TRANSCRIPTION_LANGUAGE", "en-US"),
                sample_rate=os.getenv("TRANSCRIPTION_SAMPLE_RATE", "44100"),
                media_format=os.getenv("TRANSCRIPTION_FORMAT", "webm"),
                poll_interval=os.getenv("TRANSCRIPTION_POLL_INTERVAL", "5"),
                max_wait=os.getenv("TRANSCRIPTION_MAX_WAIT", "3600"),
                max_tracked_jobs=os.getenv("TRANSCRIPTION_MAX_TRACKED_JOBS", "1000"),
            ),
            relay=RelayConfig(
                policy=os.getenv("RELAY_BUFFER_POLICY", "chunk"),
                chunk_size=os.getenv("RELAY_CHUNK_SIZE", str(64 * 1024)),
                max_buffer_bytes=os.getenv("RELAY_MAX_BUFFER_BYTES", str(64 * 1024 * 1024)),
            ),
            upload=UploadConfig(
                transcription_mode=os.getenv("UPLOAD_TRANSCRIPTION_MODE", "async"),
            ),
            port=os.getenv("PORT", "3009"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ConfigurationError(f"Invalid or missing configuration: {fields}", e) from e
