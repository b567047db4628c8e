"""
Media Relay Service.

FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from ddtrace import patch_all
from fastapi import FastAPI
from media_common import setup_logging

from dependencies import get_config, get_relay, get_storage, get_transcription_service, get_watcher
from routes import media_router, streaming_router, transcription_router

patch_all()

logger = setup_logging(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validates configuration and connects collaborators before serving."""
    config = get_config()
    logging.getLogger().setLevel(config.log_level)
    get_storage()
    get_transcription_service()
    logger.info(
        "Media relay started",
        extra={"bucket_name": config.minio.bucket_name, "port": config.port},
    )
    yield
    await get_relay().shutdown()
    await get_watcher().aclose()
    logger.info("Media relay stopped")


app = FastAPI(title="Media Relay Service", lifespan=lifespan)
app.include_router(media_router)
app.include_router(transcription_router)
app.include_router(streaming_router)


def main():
    """Starts the HTTP server."""
    config = get_config()
    uvicorn.run(app, host="0.0.0.0", port=config.port)


if __name__ == "__main__":
    main()
