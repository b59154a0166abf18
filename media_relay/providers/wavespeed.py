"""
Wavespeed AI adapter.

Wavespeed wraps every response in an envelope of the form
``{"code": 200, "message": "...", "data": {...}}``; a non-200 ``code`` is an
error even when the HTTP status is 200.
"""

from typing import Any, Dict, Optional

from ..models import JobSpec, TaskHandle, TaskStatus
from .base import ProviderAdapter, SubmitRequest, StatusRequest, first_non_empty, first_output


class WavespeedAdapter(ProviderAdapter):
    name = "wavespeed"

    def __init__(self, api_key: Optional[str], base_url: str = "https://api.wavespeed.ai",
                 endpoint_path: str = "wavespeed-ai/wan-2.2/i2v-480p"):
        super().__init__(api_key, base_url)
        self.endpoint_path = endpoint_path.strip("/")

    @property
    def api_root(self) -> str:
        return f"{self.base_url}/api/v3"

    def build_submit_request(self, job: JobSpec) -> SubmitRequest:
        payload: Dict[str, Any] = {
            "enable_base64_output": False,
            "enable_sync_mode": False,
            "prompt": job.prompt,
            "duration": job.duration,
            "seed": job.extra.get("seed", -1),
        }
        if job.image:
            payload["image"] = job.image
        headers = {"Content-Type": "application/json", **self.auth_headers()}
        return f"{self.api_root}/{self.endpoint_path}", headers, payload

    def build_status_request(self, task_id: str) -> StatusRequest:
        return f"{self.api_root}/predictions/{task_id}/result", self.auth_headers()

    def extract_error(self, body: Any) -> Optional[Any]:
        if not isinstance(body, dict):
            return None
        code = body.get("code")
        if code is not None and code != 200:
            return body
        return None

    def extract_task_id(self, body: Dict[str, Any]) -> Optional[str]:
        data = body.get("data") or {}
        return data.get("id") or None

    def normalize_status(self, handle: TaskHandle, body: Dict[str, Any]) -> TaskStatus:
        data = body.get("data") or {}
        status = str(data.get("status") or "").lower()
        if status == "completed":
            return TaskStatus.completed(first_output(data.get("outputs")), handle, raw=body)
        if status == "failed":
            detail = first_non_empty(data.get("error"), body.get("message"), default=self.failed_detail)
            return TaskStatus.failed(detail, handle, raw=body)
        # created, processing
        return TaskStatus.processing(handle, data.get("progress") or 0.0, raw=body, percent=self.reports_percent)
