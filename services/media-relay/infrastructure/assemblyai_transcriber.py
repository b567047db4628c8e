"""AssemblyAI implementation of the TranscriptionService interface."""

import threading
from urllib.parse import urlparse

import assemblyai as aai
from assemblyai import api as aai_api
from media_common import setup_logging

from domain import JobHandle, JobState, JobStatus, Transcript, Utterance
from exceptions import (
    JobNotFound,
    JobSubmissionRejected,
    ServiceUnavailable,
    TranscriptUnreadable,
)

from .interfaces import TranscriptionService

logger = setup_logging(__name__)

TRANSCRIPT_ENDPOINT = "https://api.assemblyai.com/v2/transcript"

SUPPORTED_FORMATS = frozenset(
    {"mp3", "mp4", "m4a", "wav", "flac", "ogg", "webm", "amr", "aac", "mov"}
)

_STATE_MAP = {
    aai.TranscriptStatus.queued: JobState.SUBMITTED,
    aai.TranscriptStatus.processing: JobState.IN_PROGRESS,
    aai.TranscriptStatus.completed: JobState.COMPLETED,
    aai.TranscriptStatus.error: JobState.FAILED,
}


class AssemblyAITranscriber(TranscriptionService):
    """
    Runs transcription jobs on AssemblyAI.

    AssemblyAI assigns its own transcript ids, so the caller's job names are
    mapped to remote ids in a process-local table.
    """

    def __init__(self, transcriber: aai.Transcriber, speaker_labels: bool = True):
        self._transcriber = transcriber
        self._speaker_labels = speaker_labels
        self._remote_ids: dict[str, str] = {}
        self._lock = threading.Lock()

    def start(
        self,
        job_name: str,
        media_reference: str,
        language_code: str,
        sample_rate: int,
        media_format: str,
    ) -> JobHandle:
        self._validate(job_name, media_reference, sample_rate, media_format)

        config = aai.TranscriptionConfig(
            language_code=language_code.replace("-", "_").lower(),
            speaker_labels=self._speaker_labels,
        )

        try:
            transcript = self._transcriber.submit(media_reference, config=config)
        except aai.types.TranscriptError as e:
            logger.exception("AssemblyAI rejected job", extra={"job_name": job_name})
            raise JobSubmissionRejected(job_name, str(e), e) from e
        except Exception as e:
            logger.exception("AssemblyAI submission failed", extra={"job_name": job_name})
            raise ServiceUnavailable("job submission", e) from e

        if transcript.status == aai.TranscriptStatus.error:
            raise JobSubmissionRejected(job_name, transcript.error or "unknown error")

        with self._lock:
            self._remote_ids[job_name] = transcript.id

        logger.info(
            "Transcription job submitted",
            extra={
                "job_name": job_name,
                "transcript_id": transcript.id,
                "sample_rate": sample_rate,
                "media_format": media_format,
            },
        )
        return JobHandle(
            job_name=job_name,
            remote_id=transcript.id,
            media_reference=media_reference,
        )

    def get_status(self, job_name: str) -> JobStatus:
        with self._lock:
            remote_id = self._remote_ids.get(job_name)
        if remote_id is None:
            raise JobNotFound(job_name)

        try:
            transcript = self._fetch(remote_id)
        except Exception as e:
            logger.warning(
                "AssemblyAI status request failed",
                extra={"job_name": job_name, "error": str(e)},
            )
            raise ServiceUnavailable("status check", e) from e

        state = _STATE_MAP.get(transcript.status, JobState.IN_PROGRESS)
        return JobStatus(
            job_name=job_name,
            state=state,
            transcript_uri=(
                f"{TRANSCRIPT_ENDPOINT}/{remote_id}"
                if state is JobState.COMPLETED
                else None
            ),
            error=transcript.error,
        )

    def fetch_result(self, transcript_uri: str) -> Transcript | None:
        remote_id = transcript_uri.rstrip("/").rsplit("/", 1)[-1]
        if not remote_id:
            raise TranscriptUnreadable(transcript_uri)

        try:
            transcription = self._fetch(remote_id)
        except Exception as e:
            logger.exception(
                "AssemblyAI transcript download failed",
                extra={"transcript_uri": transcript_uri},
            )
            raise TranscriptUnreadable(transcript_uri, e) from e

        if transcription.text is None:
            return None

        try:
            utterances = [
                Utterance(speaker=str(u.speaker), text=u.text)
                for u in transcription.utterances or []
            ]
        except Exception as e:
            raise TranscriptUnreadable(transcript_uri, e) from e

        logger.info(
            "Transcript fetched",
            extra={"transcript_uri": transcript_uri, "utterance_count": len(utterances)},
        )
        return Transcript(text=transcription.text, utterances=utterances)

    def discard(self, job_name: str) -> None:
        with self._lock:
            self._remote_ids.pop(job_name, None)

    def _fetch(self, remote_id: str) -> aai.types.TranscriptResponse:
        # Single request; never waits for the job to finish.
        return aai_api.get_transcript(aai.Client.get_default().http_client, remote_id)

    def _validate(
        self, job_name: str, media_reference: str, sample_rate: int, media_format: str
    ) -> None:
        parsed = urlparse(media_reference)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise JobSubmissionRejected(job_name, "media reference must be an http(s) URL")
        if sample_rate <= 0:
            raise JobSubmissionRejected(job_name, f"invalid sample rate {sample_rate}")
        if media_format.lower() not in SUPPORTED_FORMATS:
            raise JobSubmissionRejected(job_name, f"unsupported media format '{media_format}'")
