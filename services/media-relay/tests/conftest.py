"""
Test Configuration and Fixtures
"""
import os

os.environ.setdefault("DD_TRACE_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from config import RelayConfig, TranscriptionConfig
from domain import BufferPolicy, TranscriptionMode
from fakes import InMemoryStorage, ScriptedTranscriptionService
from handlers import UploadHandler
from relay import SessionManager, StreamingRelay
from watcher import JobCompletionWatcher


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def transcription_service():
    return ScriptedTranscriptionService()


@pytest.fixture
def transcription_config():
    return TranscriptionConfig(poll_interval=0, max_wait=30)


@pytest.fixture
def watcher(transcription_service, transcription_config):
    return JobCompletionWatcher(transcription_service, transcription_config)


@pytest.fixture
def relay_config():
    return RelayConfig(policy=BufferPolicy.CHUNK, chunk_size=4)


@pytest.fixture
def sessions():
    return SessionManager()


@pytest.fixture
def relay(storage, watcher, sessions, relay_config):
    return StreamingRelay(storage, watcher, sessions, relay_config)


@pytest.fixture
def upload_handler(storage, watcher):
    return UploadHandler(storage, watcher, TranscriptionMode.OFF)


@pytest.fixture
def client(storage, watcher, relay, upload_handler):
    """Test client with every collaborator replaced by an in-memory fake"""
    from dependencies import get_relay, get_storage, get_upload_handler, get_watcher
    from main import app

    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_watcher] = lambda: watcher
    app.dependency_overrides[get_relay] = lambda: relay
    app.dependency_overrides[get_upload_handler] = lambda: upload_handler
    yield TestClient(app)
    app.dependency_overrides.clear()
