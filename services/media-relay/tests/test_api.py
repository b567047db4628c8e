"""
API Endpoint Tests
"""
import asyncio

import pytest
from starlette.websockets import WebSocketDisconnect

from domain import JobState
from exceptions import JobNotFound, ServiceUnavailable

PAYLOAD = b"0123456789"


def _upload(client, name="clip.webm", data=PAYLOAD, mode="off"):
    return client.post(
        f"/api/upload?transcribe={mode}",
        files={"video": (name, data, "video/webm")},
    )


class TestUploadEndpoint:
    """POST /api/upload"""

    def test_upload_list_and_play_round_trip(self, client):
        """A 10-byte clip.webm upload is listed and played back byte for byte"""
        response = _upload(client)
        assert response.status_code == 201
        key = response.json()["video_name"]
        assert key.endswith("clip.webm")

        videos = client.get("/api/videos").json()
        assert len(videos) == 1
        assert videos[0]["key"] == key
        assert videos[0]["url"].endswith(key)

        played = client.get(f"/api/play/{key}")
        assert played.status_code == 200
        assert played.content == PAYLOAD
        assert played.headers["content-type"] == "video/webm"

    def test_upload_requires_file(self, client):
        response = client.post("/api/upload")

        assert response.status_code == 401
        assert response.json() == {"message": "Please upload a video file"}

    def test_upload_store_failure(self, client, storage):
        storage.fail_writes = True

        response = _upload(client)

        assert response.status_code == 500
        assert "error" in response.json()

    def test_upload_sync_transcription(self, client, transcription_service):
        transcription_service.script = [JobState.IN_PROGRESS, JobState.COMPLETED]

        response = _upload(client, mode="sync")

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "COMPLETED"
        assert data["job_name"].startswith("TranscriptionJob_")

    def test_upload_sync_lost_job_keeps_error_contract(self, client, transcription_service):
        transcription_service.script = [JobNotFound("TranscriptionJob_lost")]

        response = _upload(client, mode="sync")

        assert response.status_code == 500
        assert response.json() == {"error": "Error uploading video"}

    def test_upload_async_transcription_is_accepted(self, client):
        response = _upload(client, mode="async")

        assert response.status_code == 202
        data = response.json()
        assert data["status"] == "SUBMITTED"
        assert data["job_name"].startswith("TranscriptionJob_")

    def test_upload_rejects_unknown_mode(self, client):
        response = _upload(client, mode="later")

        assert response.status_code == 422


class TestVideoEndpoints:
    """GET /api/videos, /api/play and /api/video-info"""

    def test_no_videos(self, client):
        response = client.get("/api/videos")

        assert response.status_code == 200
        assert response.json() == {"message": "No videos found"}

    def test_list_store_failure(self, client, storage):
        storage.fail_reads = True

        response = client.get("/api/videos")

        assert response.status_code == 500
        assert response.json() == {"error": "Error listing videos"}

    def test_play_unknown_key(self, client):
        response = client.get("/api/play/missing.webm")

        assert response.status_code == 404
        assert "error" in response.json()

    def test_play_store_failure(self, client, storage):
        storage.add("clip.mp4", PAYLOAD)
        storage.fail_reads = True

        response = client.get("/api/play/clip.mp4")

        assert response.status_code == 500
        assert response.json() == {"error": "Error streaming video"}

    @pytest.mark.parametrize(
        "key, content_type",
        [
            ("clip.mp4", "video/mp4"),
            ("clip.WEBM", "video/webm"),
            ("notes.bin", "application/octet-stream"),
        ],
    )
    def test_play_content_type(self, client, storage, key, content_type):
        storage.add(key, PAYLOAD)

        response = client.get(f"/api/play/{key}")

        assert response.headers["content-type"] == content_type

    def test_video_info_echoes_name(self, client):
        response = client.get("/api/video-info/clip.webm")

        assert response.status_code == 200
        assert response.json() == {"video_name": "clip.webm"}


class TestTranscriptionEndpoints:
    """GET /api/transcribe and /api/transcriptions"""

    def test_transcribe_starts_job(self, client, transcription_service):
        response = client.get("/api/transcribe/clip.webm")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "SUBMITTED"
        assert transcription_service.started[0]["job_name"] == data["job_name"]

    def test_transcribe_submission_failure(self, client, transcription_service):
        transcription_service.start_error = ServiceUnavailable("job submission")

        response = client.get("/api/transcribe/clip.webm")

        assert response.status_code == 500
        assert response.json() == {"error": "Error starting transcription"}

    def test_transcription_status(self, client, watcher, transcription_service):
        transcription_service.script = [JobState.COMPLETED]
        job = asyncio.run(watcher.run("clip.webm", "https://storage.test/media/clip.webm"))

        response = client.get(f"/api/transcriptions/{job.job_name}")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "COMPLETED"
        assert data["media_key"] == "clip.webm"
        assert data["transcript"] == "hello world"

    def test_unknown_transcription(self, client):
        response = client.get("/api/transcriptions/TranscriptionJob_missing")

        assert response.status_code == 404


class TestStreamSocket:
    """WebSocket /ws/stream"""

    def test_streams_chunks_then_transcription_then_closes(self, client, storage):
        storage.add("clip.webm", PAYLOAD)

        with client.websocket_connect("/ws/stream") as websocket:
            websocket.send_json({"event": "start-streaming", "filename": "clip.webm"})

            chunks = [websocket.receive_bytes() for _ in range(3)]
            event = websocket.receive_json()
            with pytest.raises(WebSocketDisconnect) as exc_info:
                websocket.receive_bytes()

        assert b"".join(chunks) == PAYLOAD
        assert event["event"] == "transcription"
        assert event["status"] == "COMPLETED"
        assert exc_info.value.code == 1000

    def test_missing_file_errors_and_disconnects(self, client, transcription_service):
        with client.websocket_connect("/ws/stream") as websocket:
            websocket.send_json({"event": "start-streaming", "filename": "missing.webm"})

            event = websocket.receive_json()
            with pytest.raises(WebSocketDisconnect) as exc_info:
                websocket.receive_bytes()

        assert event["event"] == "error"
        assert exc_info.value.code == 1011
        assert transcription_service.started == []

    def test_unknown_event_keeps_connection_open(self, client, storage):
        storage.add("clip.webm", PAYLOAD)

        with client.websocket_connect("/ws/stream") as websocket:
            websocket.send_text("not json")
            first = websocket.receive_json()
            websocket.send_json({"event": "rewind"})
            second = websocket.receive_json()

            websocket.send_json({"event": "start-streaming", "filename": "clip.webm"})
            chunk = websocket.receive_bytes()

        assert first["event"] == "error"
        assert second["event"] == "error"
        assert "rewind" in second["message"]
        assert chunk == b"0123"

    def test_binary_control_frame_is_rejected(self, client):
        with client.websocket_connect("/ws/stream") as websocket:
            websocket.send_bytes(b"\x00\x01")
            event = websocket.receive_json()
            websocket.send_json({"event": "stop-streaming"})
            websocket.send_json({"event": "rewind"})
            follow_up = websocket.receive_json()

        assert event["event"] == "error"
        assert "text" in event["message"]
        assert follow_up["event"] == "error"
