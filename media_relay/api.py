"""
HTTP surface of the media relay.

Thin FastAPI handlers that validate the browser's JSON, call the
orchestrator or one of the relay helpers, and return normalized JSON.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import WAIT_MODE_AWAIT, Settings, get_settings
from .errors import ConfigurationError, RelayError
from .models import JobSpec
from .orchestrator import AsyncTaskOrchestrator
from .providers import available_providers, get_adapter
from .scheduling import Clock
from .script_utils import generate_script
from .storage_utils import download_image
from .voice_utils import generate_voice

logger = logging.getLogger(__name__)


class VideoRequest(BaseModel):
    prompt: Optional[str] = None
    image: Optional[str] = None
    imageUrl: Optional[str] = None
    duration: Optional[int] = None
    ratio: Optional[str] = None
    wait: Optional[bool] = None


class VideoStatusRequest(BaseModel):
    taskHandle: Optional[str] = None


class ScriptRequest(BaseModel):
    productName: Optional[str] = None
    productDesc: Optional[str] = None
    type: Optional[str] = None


class VoiceRequest(BaseModel):
    text: Optional[str] = None
    voiceId: Optional[str] = None


class ImageRequest(BaseModel):
    imageUrl: Optional[str] = None


def create_app(
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_client = client is None
        app.state.client = client or httpx.AsyncClient(timeout=settings.http_timeout_sec)
        logger.info(f"[STARTUP] Media relay ready (provider={settings.video_provider}, wait_mode={settings.video_wait_mode})")
        try:
            yield
        finally:
            if owns_client:
                await app.state.client.aclose()

    app = FastAPI(title="Media Relay", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        if exc.http_status >= 500:
            logger.error(f"{request.url.path} failed ({exc.kind}): {exc.message}")
        else:
            logger.warning(f"{request.url.path} failed ({exc.kind}): {exc.message}")
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    def orchestrator_for(request: Request) -> AsyncTaskOrchestrator:
        adapter = get_adapter(settings.video_provider, settings)
        if not adapter.is_available():
            raise ConfigurationError(f"{adapter.name.title()} API key not configured")
        return AsyncTaskOrchestrator(adapter, request.app.state.client, clock=clock, timeout=settings.http_timeout_sec)

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"status": "ok", "provider": settings.video_provider, "providers": available_providers()}

    @app.post("/api/generate-video")
    async def generate_video(body: VideoRequest, request: Request) -> Dict[str, Any]:
        orchestrator = orchestrator_for(request)
        job = JobSpec.from_request(
            body.model_dump(exclude_none=True),
            duration=settings.video_duration,
            ratio=settings.video_ratio,
        )

        wait = body.wait if body.wait is not None else settings.video_wait_mode == WAIT_MODE_AWAIT
        if wait:
            status = await orchestrator.submit_and_await(
                job,
                poll_interval_ms=settings.video_poll_interval_ms,
                max_attempts=settings.video_max_attempts,
                max_wait_seconds=settings.video_max_wait_seconds,
            )
            return status.to_dict()

        handle = await orchestrator.submit(job)
        return {"status": "started", "taskHandle": str(handle)}

    @app.post("/api/video-status")
    async def video_status(body: VideoStatusRequest, request: Request) -> Dict[str, Any]:
        status = await orchestrator_for(request).poll(body.taskHandle or "")
        return status.to_dict()

    @app.get("/api/video-status/{task_handle}")
    async def video_status_by_path(task_handle: str, request: Request) -> Dict[str, Any]:
        status = await orchestrator_for(request).poll(task_handle)
        return status.to_dict()

    @app.post("/api/generate-script")
    async def script(body: ScriptRequest, request: Request) -> Dict[str, Any]:
        text = await generate_script(request.app.state.client, settings, body.productName, body.productDesc, body.type)
        return {"success": True, "script": text}

    @app.post("/api/generate-voice")
    async def voice(body: VoiceRequest, request: Request) -> Dict[str, Any]:
        audio = await generate_voice(request.app.state.client, settings, body.text, body.voiceId)
        return {"success": True, **audio}

    @app.post("/api/download-image")
    async def image(body: ImageRequest, request: Request) -> Dict[str, Any]:
        downloaded = await download_image(request.app.state.client, body.imageUrl)
        return {"success": True, **downloaded}

    return app
