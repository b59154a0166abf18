"""
Script generation utilities.
Relays a product description to the OpenAI chat completions API and
returns a short voiceover script.
"""

import logging
from typing import Dict, Optional

import httpx

from .config import Settings
from .errors import ConfigurationError, InvalidArgument, ProviderRejected

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are an expert ad copywriter who writes compelling, short voiceover scripts for social media ads."

PROMPT_TEMPLATES: Dict[str, str] = {
    "hook": (
        'Write a short, punchy 2-3 sentence voiceover script for a social media ad hook about "{name}". {desc}. '
        "The script should grab attention immediately, create curiosity, and make viewers want to keep watching. "
        "Keep it under 50 words. Just provide the script, no quotes or labels."
    ),
    "offer": (
        'Write a short 2-3 sentence voiceover script for a sales offer ad about "{name}". {desc}. '
        "Focus on urgency, value, and a clear call-to-action. Mention a limited time offer or discount. "
        "Keep it under 50 words. Just provide the script, no quotes or labels."
    ),
    "edu": (
        'Write a short 2-3 sentence educational voiceover script about "{name}". {desc}. '
        "Explain a key benefit or how it solves a problem. Be informative but engaging. "
        "Keep it under 50 words. Just provide the script, no quotes or labels."
    ),
}


def build_prompt(product_name: str, product_desc: Optional[str] = None, script_type: Optional[str] = None) -> str:
    """Fill the template for *script_type*; unknown types use the hook template."""
    template = PROMPT_TEMPLATES.get(script_type or "hook", PROMPT_TEMPLATES["hook"])
    desc = f"Product description: {product_desc}" if product_desc else ""
    return template.format(name=product_name, desc=desc)


async def generate_script(
    client: httpx.AsyncClient,
    settings: Settings,
    product_name: Optional[str],
    product_desc: Optional[str] = None,
    script_type: Optional[str] = None,
) -> str:
    if not settings.openai_api_key:
        raise ConfigurationError("OpenAI API key not configured")
    if not product_name:
        raise InvalidArgument("Product name is required")

    url = f"{settings.openai_base_url.rstrip('/')}/v1/chat/completions"
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {settings.openai_api_key}",
    }
    payload = {
        "model": settings.openai_model,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_prompt(product_name, product_desc, script_type)},
        ],
        "max_tokens": 150,
        "temperature": 0.8,
    }

    logger.info(f"[SCRIPT] Generating '{script_type or 'hook'}' script for {product_name!r}")
    try:
        resp = await client.post(url, headers=headers, json=payload, timeout=settings.http_timeout_sec)
    except httpx.HTTPError as e:
        logger.error(f"[SCRIPT] OpenAI request failed: {e}")
        raise ProviderRejected(f"Script generation failed: {e}")

    try:
        data = resp.json()
    except ValueError:
        data = {"error": {"message": resp.text or f"HTTP {resp.status_code}"}}

    error = data.get("error") if isinstance(data, dict) else None
    if error or resp.is_error:
        message = error.get("message") if isinstance(error, dict) else (error or f"HTTP {resp.status_code}")
        logger.error(f"[SCRIPT] OpenAI error: {error or data}")
        raise ProviderRejected(str(message), payload=error)

    try:
        script = data["choices"][0]["message"]["content"].strip()
    except (KeyError, IndexError, TypeError, AttributeError):
        logger.error(f"[SCRIPT] Unexpected OpenAI response: {data}")
        raise ProviderRejected("Script generation failed", payload=data)

    logger.info(f"[SCRIPT] Generated {len(script.split())} word script")
    return script
