"""WebSocket push channel for live streaming."""

import json
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from media_common import setup_logging

from dependencies import get_relay
from exceptions import ClientInputError, InvalidEventError
from relay import StreamingRelay, ViewerChannel
from relay.streaming_relay import CLOSE_NORMAL

logger = setup_logging(__name__)

router = APIRouter(tags=["streaming"])

RelayDep = Annotated[StreamingRelay, Depends(get_relay)]


class WebSocketViewer(ViewerChannel):
    """Sends stream payloads as binary frames and events as JSON text frames."""

    def __init__(self, websocket: WebSocket):
        self._websocket = websocket

    async def send_chunk(self, data: bytes) -> None:
        await self._websocket.send_bytes(data)

    async def send_event(self, event: str, payload: dict) -> None:
        await self._websocket.send_json({"event": event, **payload})

    async def close(self, code: int = CLOSE_NORMAL) -> None:
        await self._websocket.close(code=code)


def _parse_event(text: str | None) -> dict:
    if text is None:
        raise InvalidEventError("Control messages must be JSON text frames")
    try:
        message = json.loads(text)
    except ValueError as e:
        raise InvalidEventError("Message is not valid JSON", e) from e
    if not isinstance(message, dict) or not isinstance(message.get("event"), str):
        raise InvalidEventError("Message must be an object with an 'event' field")
    return message


@router.websocket("/ws/stream")
async def stream_socket(websocket: WebSocket, relay: RelayDep):
    await websocket.accept()
    session_id = uuid.uuid4().hex
    viewer = WebSocketViewer(websocket)
    logger.info("Client connected", extra={"session_id": session_id})

    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000))
            try:
                message = _parse_event(frame.get("text"))
                event = message["event"]
                if event == "start-streaming":
                    relay.start(session_id, str(message.get("filename") or ""), viewer)
                elif event == "stop-streaming":
                    relay.stop(session_id)
                else:
                    raise InvalidEventError(f"Unknown event '{event}'")
            except ClientInputError as e:
                logger.info(
                    "Rejected client event",
                    extra={"session_id": session_id, "error": str(e)},
                )
                await viewer.send_event("error", {"message": str(e)})
    except WebSocketDisconnect:
        logger.info("Client disconnected", extra={"session_id": session_id})
    finally:
        relay.disconnect(session_id)
