"""Custom exceptions for the media-relay service."""


class MediaRelayError(Exception):
    """Base class for every error raised by the media-relay service."""

    def __init__(self, message: str, cause: Exception | None = None):
        self.cause = cause
        super().__init__(message)


class ConfigurationError(MediaRelayError):
    """Raised at startup when required configuration is missing or invalid."""


# Client input (4xx)


class ClientInputError(MediaRelayError):
    """Raised for user-correctable request problems."""


class MissingPayload(ClientInputError):
    """Raised when an upload request carries no media file."""

    def __init__(self, field_name: str = "video"):
        self.field_name = field_name
        super().__init__(f"No media payload received in field '{field_name}'")


class SessionBusyError(ClientInputError):
    """Raised when a connection already has a live stream attached."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session '{session_id}' is already streaming")


class InvalidEventError(ClientInputError):
    """Raised when a push-channel message cannot be understood."""


# Remote services (5xx)


class RemoteServiceError(MediaRelayError):
    """Raised when the object store or transcription service fails."""


class StoreUnavailable(RemoteServiceError):
    """Raised when the object store cannot be reached or misbehaves."""

    def __init__(self, object_name: str, cause: Exception | None = None):
        self.object_name = object_name
        super().__init__(f"Object store unavailable while accessing '{object_name}'", cause)


class StoreWriteDenied(RemoteServiceError):
    """Raised when the object store refuses a write."""

    def __init__(self, object_name: str, cause: Exception | None = None):
        self.object_name = object_name
        super().__init__(f"Write to '{object_name}' was denied", cause)


class ServiceUnavailable(RemoteServiceError):
    """Raised when the transcription service cannot be reached."""

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        super().__init__(f"Transcription service unavailable during {operation}", cause)


class JobSubmissionRejected(RemoteServiceError):
    """Raised when a transcription job is rejected before it starts."""

    def __init__(self, job_name: str, reason: str, cause: Exception | None = None):
        self.job_name = job_name
        self.reason = reason
        super().__init__(f"Transcription job '{job_name}' rejected: {reason}", cause)


class TranscriptUnreadable(RemoteServiceError):
    """Raised when a transcript payload cannot be downloaded or parsed."""

    def __init__(self, transcript_uri: str, cause: Exception | None = None):
        self.transcript_uri = transcript_uri
        super().__init__(f"Transcript at '{transcript_uri}' is unreadable", cause)


# Not found


class NotFoundError(MediaRelayError):
    """Raised for unknown keys or jobs."""


class ObjectNotFound(NotFoundError):
    """Raised when a key is absent from the object store."""

    def __init__(self, object_name: str, cause: Exception | None = None):
        self.object_name = object_name
        super().__init__(f"Object '{object_name}' not found", cause)


class JobNotFound(NotFoundError):
    """Raised when a job name is unknown to the transcription service."""

    def __init__(self, job_name: str):
        self.job_name = job_name
        super().__init__(f"Transcription job '{job_name}' not found")


# Transcription outcome


class TranscriptionTerminalFailure(MediaRelayError):
    """Raised when a watched transcription job does not complete."""


class TranscriptionFailed(TranscriptionTerminalFailure):
    """Raised when a job reaches FAILED or CANCELLED."""

    def __init__(self, job_name: str, terminal_state: str, detail: str | None = None):
        self.job_name = job_name
        self.terminal_state = terminal_state
        self.detail = detail
        message = f"Transcription job '{job_name}' ended in state {terminal_state}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class WatchTimeout(TranscriptionTerminalFailure):
    """Raised when a job does not reach a terminal state before the deadline."""

    def __init__(self, job_name: str, max_wait: float):
        self.job_name = job_name
        self.max_wait = max_wait
        super().__init__(
            f"Transcription job '{job_name}' still running after {max_wait:g}s"
        )


class BufferLimitExceeded(MediaRelayError):
    """Raised when an accumulated stream buffer grows past its cap."""

    def __init__(self, object_name: str, limit: int):
        self.object_name = object_name
        self.limit = limit
        super().__init__(f"Buffer for '{object_name}' exceeded {limit} bytes")
