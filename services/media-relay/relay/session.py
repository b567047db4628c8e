"""Per-connection stream sessions and the table that owns them."""

import asyncio
import threading

from domain import BufferPolicy, StreamState
from exceptions import BufferLimitExceeded, SessionBusyError
from infrastructure.interfaces import ObjectStream


class StreamSession:
    """State of one viewer connection relaying one stored object."""

    def __init__(
        self,
        session_id: str,
        key: str,
        policy: BufferPolicy = BufferPolicy.CHUNK,
        max_buffer_bytes: int | None = None,
    ):
        self.session_id = session_id
        self.key = key
        self.policy = policy
        self.max_buffer_bytes = max_buffer_bytes
        self.state = StreamState.STREAMING
        self.task: asyncio.Task | None = None
        self.bytes_relayed = 0
        self._buffer = bytearray() if policy is BufferPolicy.ACCUMULATE else None
        self._producer: ObjectStream | None = None

    @property
    def is_live(self) -> bool:
        return self.task is not None and not self.task.done()

    @property
    def producer(self) -> ObjectStream | None:
        return self._producer

    def attach(self, producer: ObjectStream) -> None:
        """Binds a producer. Fails if one is already attached."""
        if self._producer is not None:
            raise SessionBusyError(self.session_id)
        self._producer = producer

    def release(self) -> None:
        """Detaches and closes the producer, if any."""
        producer, self._producer = self._producer, None
        if producer is not None:
            producer.close()

    def absorb(self, chunk: bytes) -> bytes:
        """
        Records a chunk and returns the payload to forward.

        With the chunk policy the payload is the chunk itself. With the
        accumulate policy it is every byte received so far, so n chunks cost
        O(n^2) bytes on the wire; the buffer is capped at ``max_buffer_bytes``.
        """
        self.bytes_relayed += len(chunk)
        if self._buffer is None:
            return chunk
        if self.max_buffer_bytes is not None and len(self._buffer) + len(chunk) > self.max_buffer_bytes:
            raise BufferLimitExceeded(self.key, self.max_buffer_bytes)
        self._buffer.extend(chunk)
        return bytes(self._buffer)


class SessionManager:
    """Thread-safe table of live stream sessions keyed by connection id."""

    def __init__(self):
        self._sessions: dict[str, StreamSession] = {}
        self._lock = threading.Lock()

    def open(
        self,
        session_id: str,
        key: str,
        policy: BufferPolicy = BufferPolicy.CHUNK,
        max_buffer_bytes: int | None = None,
    ) -> StreamSession:
        """
        Registers a new session for a connection.

        Raises:
            SessionBusyError: If the connection already has a live session.
        """
        with self._lock:
            existing = self._sessions.get(session_id)
            if existing is not None and (existing.is_live or existing.producer is not None):
                raise SessionBusyError(session_id)
            session = StreamSession(session_id, key, policy, max_buffer_bytes)
            self._sessions[session_id] = session
            return session

    def get(self, session_id: str) -> StreamSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def pop(self, session_id: str) -> StreamSession | None:
        with self._lock:
            return self._sessions.pop(session_id, None)

    def discard(self, session: StreamSession) -> None:
        """Removes a session only if it is still the registered one."""
        with self._lock:
            if self._sessions.get(session.session_id) is session:
                del self._sessions[session.session_id]

    def session_ids(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
