"""Runway image-to-video adapter."""

from typing import Any, Dict, Optional

from ..models import JobSpec, TaskHandle, TaskStatus
from .base import ProviderAdapter, SubmitRequest, StatusRequest, first_non_empty, first_output

SUCCEEDED = "SUCCEEDED"
FAILED_STATES = ("FAILED", "CANCELLED")


class RunwayAdapter(ProviderAdapter):
    name = "runway"

    def __init__(self, api_key: Optional[str], base_url: str = "https://api.runwayml.com",
                 model: str = "gen3a_turbo", api_version: str = "2024-11-06"):
        super().__init__(api_key, base_url)
        self.model = model
        self.api_version = api_version

    def auth_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "X-Runway-Version": self.api_version,
        }

    def build_submit_request(self, job: JobSpec) -> SubmitRequest:
        payload: Dict[str, Any] = {
            "model": self.model,
            "promptText": job.prompt,
            "duration": job.duration,
            "ratio": job.ratio,
        }
        if job.image:
            payload["promptImage"] = job.image
        headers = {"Content-Type": "application/json", **self.auth_headers()}
        return f"{self.base_url}/v1/image_to_video", headers, payload

    def build_status_request(self, task_id: str) -> StatusRequest:
        return f"{self.base_url}/v1/tasks/{task_id}", self.auth_headers()

    def extract_task_id(self, body: Dict[str, Any]) -> Optional[str]:
        return body.get("id") or None

    def normalize_status(self, handle: TaskHandle, body: Dict[str, Any]) -> TaskStatus:
        status = str(body.get("status") or "").upper()
        if status == SUCCEEDED:
            return TaskStatus.completed(first_output(body.get("output")), handle, raw=body)
        if status in FAILED_STATES:
            detail = first_non_empty(body.get("failure"), body.get("failureCode"), default=self.failed_detail)
            return TaskStatus.failed(detail, handle, raw=body)
        # PENDING, THROTTLED, RUNNING
        return TaskStatus.processing(handle, body.get("progress") or 0.0, raw=body, percent=self.reports_percent)
