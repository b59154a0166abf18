"""
Process configuration for the media relay.

All settings come from environment variables (optionally via a .env file
loaded by the entry point). Secrets are read here once and never logged in
full.
"""

import os
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional

logger = logging.getLogger(__name__)

WAIT_MODE_POLL = "poll"
WAIT_MODE_AWAIT = "await"


def _int_env(name: str, default: int, minimum: Optional[int] = None) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        logger.warning(f"[CONFIG] {name}={value!r} is not an integer, using {default}")
        return default
    if minimum is not None and parsed < minimum:
        logger.warning(f"[CONFIG] {name}={parsed} is below {minimum}, using {default}")
        return default
    return parsed


def _float_env(name: str, positive: bool = False) -> Optional[float]:
    value = os.getenv(name)
    if not value:
        return None
    try:
        parsed = float(value)
    except ValueError:
        logger.warning(f"[CONFIG] {name}={value!r} is not a number, ignoring")
        return None
    if positive and parsed <= 0:
        logger.warning(f"[CONFIG] {name}={parsed} must be positive, ignoring")
        return None
    return parsed


@dataclass(frozen=True)
class Settings:
    video_provider: str = "runway"

    runway_api_key: Optional[str] = None
    runway_api_version: str = "2024-11-06"
    runway_model: str = "gen3a_turbo"
    runway_base_url: str = "https://api.runwayml.com"

    wavespeed_api_key: Optional[str] = None
    wavespeed_endpoint: str = "wavespeed-ai/wan-2.2/i2v-480p"
    wavespeed_base_url: str = "https://api.wavespeed.ai"

    replicate_api_token: Optional[str] = None
    replicate_model: str = "wan-video/wan-2.2-i2v-fast"
    replicate_base_url: str = "https://api.replicate.com"

    video_duration: int = 5
    video_ratio: str = "1280:768"
    video_wait_mode: str = WAIT_MODE_POLL
    video_poll_interval_ms: int = 5000
    video_max_attempts: int = 24
    video_max_wait_seconds: Optional[float] = None

    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str = "https://api.openai.com"

    elevenlabs_api_key: Optional[str] = None
    elevenlabs_voice_id: str = "EXAVITQu4vr4xnSDxMaL"
    elevenlabs_model_id: str = "eleven_monolingual_v1"
    elevenlabs_base_url: str = "https://api.elevenlabs.io"

    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    auth_redirect_url: str = "http://localhost:8000"

    http_timeout_sec: float = 30.0
    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        wait_mode = os.getenv("VIDEO_WAIT_MODE", WAIT_MODE_POLL).lower()
        if wait_mode not in (WAIT_MODE_POLL, WAIT_MODE_AWAIT):
            logger.warning(f"[CONFIG] Unknown VIDEO_WAIT_MODE '{wait_mode}', using '{WAIT_MODE_POLL}'")
            wait_mode = WAIT_MODE_POLL

        return cls(
            video_provider=os.getenv("VIDEO_PROVIDER", "runway").lower(),
            runway_api_key=os.getenv("RUNWAY_API_KEY"),
            runway_api_version=os.getenv("RUNWAY_API_VERSION", "2024-11-06"),
            runway_model=os.getenv("RUNWAY_MODEL", "gen3a_turbo"),
            wavespeed_api_key=os.getenv("WAVESPEED_API_KEY"),
            wavespeed_endpoint=os.getenv("WAVESPEED_ENDPOINT", "wavespeed-ai/wan-2.2/i2v-480p"),
            replicate_api_token=os.getenv("REPLICATE_API_TOKEN"),
            replicate_model=os.getenv("REPLICATE_MODEL", "wan-video/wan-2.2-i2v-fast"),
            video_duration=_int_env("VIDEO_DURATION", 5, minimum=1),
            video_ratio=os.getenv("VIDEO_RATIO", "1280:768"),
            video_wait_mode=wait_mode,
            video_poll_interval_ms=_int_env("VIDEO_POLL_INTERVAL_MS", 5000, minimum=0),
            video_max_attempts=_int_env("VIDEO_MAX_ATTEMPTS", 24, minimum=1),
            video_max_wait_seconds=_float_env("VIDEO_MAX_WAIT_SECONDS", positive=True),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            elevenlabs_api_key=os.getenv("ELEVENLABS_API_KEY"),
            elevenlabs_voice_id=os.getenv("ELEVENLABS_VOICE_ID", "EXAVITQu4vr4xnSDxMaL"),
            elevenlabs_model_id=os.getenv("ELEVENLABS_MODEL_ID", "eleven_monolingual_v1"),
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_anon_key=os.getenv("SUPABASE_ANON_KEY"),
            auth_redirect_url=os.getenv("AUTH_REDIRECT_URL", "http://localhost:8000"),
            http_timeout_sec=_float_env("HTTP_TIMEOUT_SEC", positive=True) or 30.0,
            host=os.getenv("RELAY_HOST", "0.0.0.0"),
            port=_int_env("RELAY_PORT", 8000, minimum=1),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


_PROVIDER_KEY_VARS = {
    "runway": "RUNWAY_API_KEY",
    "wavespeed": "WAVESPEED_API_KEY",
    "replicate": "REPLICATE_API_TOKEN",
}


def _display(var: str, value: str) -> str:
    # Show partial value for secrets
    if "KEY" in var or "TOKEN" in var or "SECRET" in var:
        return f"{value[:6]}..." if len(value) > 10 else "***"
    return value


def validate_environment() -> bool:
    """Validate required environment variables at startup.

    Only the key of the configured video provider is required; everything
    else degrades to a 500 on the endpoint that needs it.
    """
    logger.info("[STARTUP] Validating media relay environment...")

    provider = os.getenv("VIDEO_PROVIDER", "runway").lower()
    if provider not in _PROVIDER_KEY_VARS:
        logger.error(f"[STARTUP] Unknown VIDEO_PROVIDER '{provider}'; expected one of {sorted(_PROVIDER_KEY_VARS)}")
        return False

    required_vars: Dict[str, str] = {
        _PROVIDER_KEY_VARS[provider]: f"API key for the '{provider}' video provider",
    }
    important_vars: Dict[str, str] = {
        "OPENAI_API_KEY": "Script generation",
        "ELEVENLABS_API_KEY": "Voice generation",
        "SUPABASE_URL": "Identity provider URL",
        "SUPABASE_ANON_KEY": "Identity provider public key",
        "VIDEO_WAIT_MODE": "poll (return task handle) or await (block until done)",
        "LOG_LEVEL": "Logging level (DEBUG/INFO/WARNING/ERROR)",
    }

    missing_required = []
    for var, description in required_vars.items():
        value = os.getenv(var)
        if not value:
            missing_required.append(f"  ❌ {var}: {description}")
            logger.error(f"[STARTUP] Missing required environment variable: {var}")
        else:
            logger.info(f"[STARTUP]   ✅ {var}: {_display(var, value)}")

    for var, description in important_vars.items():
        value = os.getenv(var)
        if not value:
            logger.warning(f"[STARTUP]   ⚠️  {var}: {description} (not set)")
        else:
            logger.info(f"[STARTUP]   ✅ {var}: {_display(var, value)}")

    if missing_required:
        logger.error("[STARTUP] ❌ CRITICAL: Missing required environment variables:")
        for msg in missing_required:
            logger.error(f"[STARTUP] {msg}")
        return False

    logger.info("[STARTUP] ✅ Environment validation completed successfully")
    return True
