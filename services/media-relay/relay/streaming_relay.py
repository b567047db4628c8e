"""Relays stored objects to connected viewers and transcribes them afterwards."""

import asyncio
from abc import ABC, abstractmethod

from media_common import setup_logging

from config import RelayConfig
from domain import StreamState
from exceptions import InvalidEventError, MediaRelayError
from infrastructure.interfaces import ObjectStream, StorageClient
from watcher import JobCompletionWatcher

from .session import SessionManager, StreamSession

logger = setup_logging(__name__)

CLOSE_NORMAL = 1000
CLOSE_INTERNAL_ERROR = 1011


class ViewerChannel(ABC):
    """Push channel to one connected viewer."""

    @abstractmethod
    async def send_chunk(self, data: bytes) -> None:
        """Sends a stream payload."""

    @abstractmethod
    async def send_event(self, event: str, payload: dict) -> None:
        """Sends a named control event."""

    @abstractmethod
    async def close(self, code: int = CLOSE_NORMAL) -> None:
        """Closes the connection from the server side."""


class StreamingRelay:
    """
    Runs one cooperative task per viewer session.

    The task opens the object, forwards chunks in store order, and once the
    stream ends submits a transcription job and waits for its outcome before
    closing the connection. Stopping or disconnecting releases the producer
    right away and cancels the task, including any transcription watch it is
    awaiting.
    """

    def __init__(
        self,
        storage: StorageClient,
        watcher: JobCompletionWatcher,
        sessions: SessionManager,
        config: RelayConfig,
    ):
        self._storage = storage
        self._watcher = watcher
        self._sessions = sessions
        self._config = config

    def start(self, session_id: str, key: str, viewer: ViewerChannel) -> StreamSession:
        """
        Starts relaying ``key`` to a viewer.

        Raises:
            InvalidEventError: If no key is given.
            SessionBusyError: If the connection already has a live session.
        """
        if not key:
            raise InvalidEventError("start-streaming requires a filename")

        session = self._sessions.open(
            session_id,
            key,
            policy=self._config.policy,
            max_buffer_bytes=self._config.max_buffer_bytes,
        )
        session.task = asyncio.create_task(
            self._run(session, viewer), name=f"stream-{session_id}"
        )
        logger.info(
            "Start streaming",
            extra={"session_id": session_id, "key": key, "policy": self._config.policy.value},
        )
        return session

    def stop(self, session_id: str) -> bool:
        """
        Stops a session that is still relaying bytes.

        No transcription is submitted for a stopped session. A session that
        already reached end of stream keeps waiting for its transcription.
        """
        session = self._sessions.get(session_id)
        if session is None or session.state is not StreamState.STREAMING:
            return False

        session.state = StreamState.STOPPED
        self._sessions.discard(session)
        session.release()
        if session.task is not None:
            session.task.cancel()

        logger.info("Stop streaming", extra={"session_id": session_id, "key": session.key})
        return True

    def disconnect(self, session_id: str) -> None:
        """Tears down whatever the connection was doing."""
        session = self._sessions.pop(session_id)
        if session is None:
            return

        if session.state is StreamState.STREAMING:
            session.state = StreamState.STOPPED
        session.release()
        if session.task is not None and not session.task.done():
            session.task.cancel()

        logger.info(
            "Viewer disconnected",
            extra={"session_id": session_id, "key": session.key, "state": session.state.value},
        )

    async def shutdown(self) -> None:
        """Disconnects every session and waits for their tasks to finish."""
        tasks = []
        for session_id in self._sessions.session_ids():
            session = self._sessions.get(session_id)
            if session is not None and session.task is not None:
                tasks.append(session.task)
            self.disconnect(session_id)
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, session: StreamSession, viewer: ViewerChannel) -> None:
        try:
            producer = await self._open(session.key)
            if session.state is not StreamState.STREAMING:
                producer.close()
                return
            session.attach(producer)

            await self._pump(session, viewer)
            if session.state is not StreamState.STREAMING:
                return

            session.state = StreamState.ENDED
            session.release()
            logger.info(
                "End of stream",
                extra={"session_id": session.session_id, "key": session.key, "bytes": session.bytes_relayed},
            )

            media_reference = await asyncio.to_thread(self._storage.presigned_url, session.key)
            job = await self._watcher.run(session.key, media_reference)

            await viewer.send_event(
                "transcription",
                {
                    "job_name": job.job_name,
                    "status": job.state.value,
                    "transcript": job.transcript.text if job.transcript else None,
                },
            )
            await viewer.close(CLOSE_NORMAL)
        except asyncio.CancelledError:
            logger.info(
                "Stream session cancelled",
                extra={"session_id": session.session_id, "state": session.state.value},
            )
            raise
        except MediaRelayError as e:
            if session.state is StreamState.STOPPED:
                return
            session.state = StreamState.ERRORED
            logger.warning(
                "Stream session failed",
                extra={"session_id": session.session_id, "key": session.key, "error": str(e)},
            )
            await self._abort(viewer, str(e))
        except Exception:
            session.state = StreamState.ERRORED
            logger.exception(
                "Unexpected stream session error",
                extra={"session_id": session.session_id, "key": session.key},
            )
            await self._abort(viewer, "Error streaming video")
        finally:
            session.release()
            self._sessions.discard(session)

    async def _open(self, key: str) -> ObjectStream:
        opening = asyncio.ensure_future(asyncio.to_thread(self._storage.get, key))
        try:
            return await asyncio.shield(opening)
        except asyncio.CancelledError:
            # The worker thread may still hand back an open stream.
            opening.add_done_callback(_close_orphan)
            raise

    async def _pump(self, session: StreamSession, viewer: ViewerChannel) -> None:
        while session.state is StreamState.STREAMING:
            producer = session.producer
            if producer is None:
                break
            chunk = await asyncio.to_thread(producer.read, self._config.chunk_size)
            if not chunk:
                break
            await viewer.send_chunk(session.absorb(chunk))

    async def _abort(self, viewer: ViewerChannel, message: str) -> None:
        try:
            await viewer.send_event("error", {"message": message})
            await viewer.close(CLOSE_INTERNAL_ERROR)
        except Exception as e:
            logger.info("Viewer already gone", extra={"error": str(e)})


def _close_orphan(opening: asyncio.Future) -> None:
    if opening.cancelled() or opening.exception() is not None:
        return
    opening.result().close()
