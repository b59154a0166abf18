"""Replicate predictions adapter (Wan image-to-video models)."""

from typing import Any, Dict, Optional

from ..models import JobSpec, TaskHandle, TaskStatus
from .base import ProviderAdapter, SubmitRequest, StatusRequest, first_non_empty, first_output

MAX_PROMPT_LENGTH = 2000


class ReplicateAdapter(ProviderAdapter):
    name = "replicate"

    def __init__(self, api_key: Optional[str], base_url: str = "https://api.replicate.com",
                 model: str = "wan-video/wan-2.2-i2v-fast"):
        super().__init__(api_key, base_url)
        self.model = model

    def build_submit_request(self, job: JobSpec) -> SubmitRequest:
        model_input: Dict[str, Any] = {
            "prompt": job.prompt[:MAX_PROMPT_LENGTH],
            "aspect_ratio": _replicate_ratio(job.ratio),
        }
        if job.image:
            model_input["image"] = job.image
        headers = {"Content-Type": "application/json", **self.auth_headers()}
        return f"{self.base_url}/v1/models/{self.model}/predictions", headers, {"input": model_input}

    def build_status_request(self, task_id: str) -> StatusRequest:
        return f"{self.base_url}/v1/predictions/{task_id}", self.auth_headers()

    def extract_task_id(self, body: Dict[str, Any]) -> Optional[str]:
        return body.get("id") or None

    def extract_error(self, body: Any) -> Optional[Any]:
        # Replicate echoes "error": null on healthy predictions; only a
        # submission-time failure status counts as a rejection
        if isinstance(body, dict) and body.get("status") == "failed" and body.get("error"):
            return body["error"]
        return None

    def normalize_status(self, handle: TaskHandle, body: Dict[str, Any]) -> TaskStatus:
        status = str(body.get("status") or "").lower()
        if status == "succeeded":
            return TaskStatus.completed(first_output(body.get("output")), handle, raw=body)
        if status in ("failed", "canceled"):
            detail = first_non_empty(body.get("error"), status if status == "canceled" else None, default=self.failed_detail)
            return TaskStatus.failed(detail, handle, raw=body)
        metrics = body.get("metrics") or {}
        return TaskStatus.processing(handle, metrics.get("progress") or 0.0, raw=body, percent=self.reports_percent)


def _replicate_ratio(ratio: str) -> str:
    """Replicate models take "16:9" style ratios rather than pixel sizes."""
    try:
        width, height = (int(part) for part in ratio.split(":"))
    except (ValueError, AttributeError):
        return "16:9"
    if width > 16 or height > 16:
        return "16:9" if width >= height else "9:16"
    return f"{width}:{height}"
