import os
import sys
import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

# Add the project root to the Python path so the package imports without install
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from media_relay.config import Settings
from media_relay.providers import RunwayAdapter


class StubProvider:
    """Scripted provider behind an httpx.MockTransport.

    ``submit_response`` answers job creation; ``status_responses`` are
    consumed one per status call (the last one repeats).
    """

    def __init__(self, submit_response=None, status_responses=None, submit_status=200, status_code=200):
        self.submit_response = submit_response if submit_response is not None else {"id": "task_123"}
        self.status_responses: List[Dict[str, Any]] = list(status_responses or [])
        self.submit_status = submit_status
        self.status_code = status_code
        self.requests: List[httpx.Request] = []

    @property
    def submit_calls(self) -> int:
        return sum(1 for r in self.requests if r.method == "POST")

    @property
    def status_calls(self) -> int:
        return sum(1 for r in self.requests if r.method == "GET")

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST":
            return httpx.Response(self.submit_status, json=self.submit_response)
        if len(self.status_responses) > 1:
            body = self.status_responses.pop(0)
        else:
            body = self.status_responses[0] if self.status_responses else {"status": "RUNNING"}
        return httpx.Response(self.status_code, json=body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def request_json(request: httpx.Request) -> Dict[str, Any]:
    return json.loads(request.content.decode("utf-8"))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        video_provider="runway",
        runway_api_key="rw-test-key",
        wavespeed_api_key="ws-test-key",
        replicate_api_token="rp-test-key",
        openai_api_key="oa-test-key",
        elevenlabs_api_key="el-test-key",
        video_poll_interval_ms=5000,
        video_max_attempts=3,
    )


@pytest.fixture
def runway() -> RunwayAdapter:
    return RunwayAdapter("rw-test-key")
