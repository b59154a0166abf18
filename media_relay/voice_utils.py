"""Text-to-speech relay for the ElevenLabs API."""

import base64
import logging
from typing import Any, Dict, Optional

import httpx

from .config import Settings
from .errors import ConfigurationError, InvalidArgument, ProviderRejected

logger = logging.getLogger(__name__)

VOICE_SETTINGS = {"stability": 0.5, "similarity_boost": 0.75}


async def generate_voice(
    client: httpx.AsyncClient,
    settings: Settings,
    text: Optional[str],
    voice_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Synthesize *text* and return base64 audio with its content type."""
    if not settings.elevenlabs_api_key:
        raise ConfigurationError("ElevenLabs API key not configured")
    if not text:
        raise InvalidArgument("Text is required")

    voice = voice_id or settings.elevenlabs_voice_id
    url = f"{settings.elevenlabs_base_url.rstrip('/')}/v1/text-to-speech/{voice}"
    headers = {
        "Content-Type": "application/json",
        "xi-api-key": settings.elevenlabs_api_key,
    }
    payload = {
        "text": text,
        "model_id": settings.elevenlabs_model_id,
        "voice_settings": VOICE_SETTINGS,
    }

    logger.info(f"[VOICE] Synthesizing {len(text)} characters with voice {voice}")
    try:
        resp = await client.post(url, headers=headers, json=payload, timeout=settings.http_timeout_sec)
    except httpx.HTTPError as e:
        logger.error(f"[VOICE] ElevenLabs request failed: {e}")
        raise ProviderRejected(f"Voice generation failed: {e}")

    if resp.is_error:
        try:
            error_data = resp.json()
        except ValueError:
            error_data = {}
        logger.error(f"[VOICE] ElevenLabs error {resp.status_code}: {error_data}")
        detail = error_data.get("detail") if isinstance(error_data, dict) else None
        message = detail.get("message") if isinstance(detail, dict) else None
        raise ProviderRejected(message or "Voice generation failed", payload=error_data or None)

    audio = resp.content
    logger.info(f"[VOICE] Received {len(audio)} bytes of audio")
    return {
        "audioData": base64.b64encode(audio).decode("utf-8"),
        "contentType": resp.headers.get("content-type", "audio/mpeg").split(";")[0] or "audio/mpeg",
    }
