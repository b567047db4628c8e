"""Abstract interface for transcription service operations."""

from abc import ABC, abstractmethod

from domain import JobHandle, JobStatus, Transcript


class TranscriptionService(ABC):
    """Abstract base class for asynchronous speech-to-text backends."""

    @abstractmethod
    def start(
        self,
        job_name: str,
        media_reference: str,
        language_code: str,
        sample_rate: int,
        media_format: str,
    ) -> JobHandle:
        """
        Submits a transcription job without waiting for it.

        Args:
            job_name: Unique name the caller uses to refer to the job.
            media_reference: URL the service downloads the media from.
            language_code: Language hint, e.g. ``en-US``.
            sample_rate: Media sample rate in hertz.
            media_format: Container format, e.g. ``webm``.

        Returns:
            Handle of the accepted job.

        Raises:
            JobSubmissionRejected: If the parameters are invalid or the
                service refuses the job.
            ServiceUnavailable: If the service cannot be reached.
        """

    @abstractmethod
    def get_status(self, job_name: str) -> JobStatus:
        """
        Fetches the current state of a job.

        Raises:
            JobNotFound: If the job name is unknown.
            ServiceUnavailable: If the service cannot be reached.
        """

    @abstractmethod
    def fetch_result(self, transcript_uri: str) -> Transcript | None:
        """
        Downloads and parses a transcript.

        Returns:
            The transcript, or None if the job has no text yet.

        Raises:
            TranscriptUnreadable: If the payload is malformed.
        """

    @abstractmethod
    def discard(self, job_name: str) -> None:
        """Forgets a job that will not be polled again. Unknown names are ignored."""
