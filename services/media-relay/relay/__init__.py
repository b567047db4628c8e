"""Streaming relay exports."""

from .session import SessionManager, StreamSession
from .streaming_relay import StreamingRelay, ViewerChannel

__all__ = ["SessionManager", "StreamSession", "StreamingRelay", "ViewerChannel"]
