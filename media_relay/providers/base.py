"""
Common contract for video generation providers.

An adapter knows how one vendor wants a job serialized and how that
vendor reports status. It never performs I/O itself; the orchestrator
sends the requests it builds and hands the decoded bodies back.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

from ..models import JobSpec, TaskHandle, TaskStatus

SubmitRequest = Tuple[str, Dict[str, str], Dict[str, Any]]
StatusRequest = Tuple[str, Dict[str, str]]


def first_output(value: Any) -> Optional[str]:
    """Return the primary result reference from an output field.

    Providers return either a list of URLs, a single URL string or an
    object with a ``url`` key.
    """
    if isinstance(value, str):
        return value or None
    if isinstance(value, (list, tuple)):
        for item in value:
            found = first_output(item)
            if found:
                return found
        return None
    if isinstance(value, dict):
        return first_output(value.get("url") or value.get("uri"))
    return None


def first_non_empty(*values: Any, default: str) -> str:
    for value in values:
        if value is None:
            continue
        if isinstance(value, dict):
            value = value.get("message") or value.get("detail")
        if value:
            return str(value)
    return default


class ProviderAdapter(ABC):
    """Per-vendor translation layer."""

    name: str = ""
    failed_detail: str = "Video generation failed"
    # True when the vendor reports progress as 0-100 rather than 0-1
    reports_percent: bool = False

    def __init__(self, api_key: Optional[str], base_url: str):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    def is_available(self) -> bool:
        return bool(self.api_key)

    def handle(self, task_id: str) -> TaskHandle:
        return TaskHandle(task_id=task_id, provider=self.name)

    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    @abstractmethod
    def build_submit_request(self, job: JobSpec) -> SubmitRequest:
        """Return (url, headers, json payload) for job creation."""

    @abstractmethod
    def build_status_request(self, task_id: str) -> StatusRequest:
        """Return (url, headers) for a status check."""

    @abstractmethod
    def extract_task_id(self, body: Dict[str, Any]) -> Optional[str]:
        """Pull the provider job identifier from a successful submission."""

    @abstractmethod
    def normalize_status(self, handle: TaskHandle, body: Dict[str, Any]) -> TaskStatus:
        """Map a raw status body onto the normalized vocabulary."""

    def extract_error(self, body: Any) -> Optional[Any]:
        """Return an error payload embedded in an otherwise-2xx body, if any."""
        if isinstance(body, dict) and body.get("error"):
            return body["error"]
        return None
