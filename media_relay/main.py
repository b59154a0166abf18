import sys
import json
import asyncio
import logging

import httpx
import uvicorn
from dotenv import load_dotenv

# Load environment variables from .env at import time so module-level reads work
load_dotenv()

from .logging_config import setup_logging
from .config import get_settings, validate_environment
from .errors import RelayError
from .models import JobSpec
from .orchestrator import AsyncTaskOrchestrator
from .providers import get_adapter

logger = logging.getLogger(__name__)


async def run_submit(prompt: str, image: str = None, wait: bool = False) -> dict:
    settings = get_settings()
    adapter = get_adapter(settings.video_provider, settings)
    job = JobSpec(prompt=prompt, image=image, duration=settings.video_duration, ratio=settings.video_ratio)

    async with httpx.AsyncClient(timeout=settings.http_timeout_sec) as client:
        orchestrator = AsyncTaskOrchestrator(adapter, client, timeout=settings.http_timeout_sec)
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


async def run_status(task_id: str) -> dict:
    settings = get_settings()
    adapter = get_adapter(settings.video_provider, settings)
    async with httpx.AsyncClient(timeout=settings.http_timeout_sec) as client:
        orchestrator = AsyncTaskOrchestrator(adapter, client, timeout=settings.http_timeout_sec)
        status = await orchestrator.poll(task_id)
        return status.to_dict()


def main():
    """Main entry point with command line argument handling."""
    import argparse

    parser = argparse.ArgumentParser(description="Generative media relay")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    subparsers = parser.add_subparsers(dest="mode")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP relay")
    serve_parser.add_argument("--host", default=None)
    serve_parser.add_argument("--port", type=int, default=None)

    submit_parser = subparsers.add_parser("submit", help="Submit one video job")
    submit_parser.add_argument("--prompt", required=True)
    submit_parser.add_argument("--image", default=None, help="Seed image URL")
    submit_parser.add_argument("--wait", action="store_true", help="Block until the job finishes")

    status_parser = subparsers.add_parser("status", help="Check a submitted job")
    status_parser.add_argument("task_id")

    args = parser.parse_args()

    setup_logging("DEBUG" if args.verbose else None)

    if not validate_environment():
        logger.error("[STARTUP] 🛑 Exiting due to missing required configuration!")
        sys.exit(1)

    mode = args.mode or "serve"
    if mode == "serve":
        from .api import create_app

        settings = get_settings()
        uvicorn.run(
            create_app(settings),
            host=getattr(args, "host", None) or settings.host,
            port=getattr(args, "port", None) or settings.port,
            log_config=None,
        )
        return

    try:
        if mode == "submit":
            result = asyncio.run(run_submit(args.prompt, args.image, args.wait))
        else:
            result = asyncio.run(run_status(args.task_id))
    except RelayError as e:
        print(json.dumps(e.to_dict(), indent=2))
        sys.exit(1)

    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
