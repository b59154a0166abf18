"""Data model for submitted jobs and their normalized status."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

DEFAULT_DURATION = 5
DEFAULT_RATIO = "1280:768"


class TaskState(str, Enum):
    STARTED = "started"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.COMPLETED, TaskState.FAILED)


@dataclass(frozen=True)
class JobSpec:
    """A caller's request to start external work."""
    prompt: str
    image: Optional[str] = None
    duration: int = DEFAULT_DURATION
    ratio: str = DEFAULT_RATIO
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_request(cls, body: Dict[str, Any], duration: int = DEFAULT_DURATION, ratio: str = DEFAULT_RATIO) -> "JobSpec":
        """Build a JobSpec from an inbound JSON body.

        Accepts both ``image`` and the older ``imageUrl`` key. Missing or
        non-numeric durations fall back to *duration*.
        """
        prompt = body.get("prompt") or ""
        image = body.get("image") or body.get("imageUrl") or body.get("image_url") or None

        raw_duration = body.get("duration", duration)
        try:
            job_duration = int(raw_duration)
        except (TypeError, ValueError):
            job_duration = duration

        return cls(
            prompt=prompt.strip() if isinstance(prompt, str) else "",
            image=image,
            duration=job_duration,
            ratio=body.get("ratio") or body.get("aspect_ratio") or ratio,
        )


@dataclass(frozen=True)
class TaskHandle:
    """Opaque provider-issued identifier for one submitted job."""
    task_id: str
    provider: str = ""

    def __str__(self) -> str:
        return self.task_id


def _clamp_progress(progress: Any, percent: bool = False) -> float:
    try:
        value = float(progress)
    except (TypeError, ValueError):
        return 0.0
    # Providers flagged as percent-based report 0-100
    if percent:
        value = value / 100.0
    return max(0.0, min(1.0, value))


@dataclass(frozen=True)
class TaskStatus:
    """Normalized outcome of a single poll."""
    state: TaskState
    progress: float = 0.0
    result: Optional[str] = None
    detail: Optional[str] = None
    task_handle: Optional[TaskHandle] = None
    raw: Optional[Dict[str, Any]] = field(default=None, compare=False, repr=False)

    @classmethod
    def started(cls, task_handle: TaskHandle) -> "TaskStatus":
        return cls(state=TaskState.STARTED, task_handle=task_handle)

    @classmethod
    def processing(cls, task_handle: Optional[TaskHandle] = None, progress: Any = 0.0, raw: Optional[Dict[str, Any]] = None, percent: bool = False) -> "TaskStatus":
        return cls(state=TaskState.PROCESSING, progress=_clamp_progress(progress, percent), task_handle=task_handle, raw=raw)

    @classmethod
    def completed(cls, result: Optional[str], task_handle: Optional[TaskHandle] = None, raw: Optional[Dict[str, Any]] = None) -> "TaskStatus":
        return cls(state=TaskState.COMPLETED, progress=1.0, result=result, task_handle=task_handle, raw=raw)

    @classmethod
    def failed(cls, detail: str, task_handle: Optional[TaskHandle] = None, raw: Optional[Dict[str, Any]] = None) -> "TaskStatus":
        return cls(state=TaskState.FAILED, detail=detail, task_handle=task_handle, raw=raw)

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    def to_dict(self) -> Dict[str, Any]:
        """Caller-facing JSON shape."""
        body: Dict[str, Any] = {"status": self.state.value}
        if self.state is TaskState.STARTED:
            body["taskHandle"] = str(self.task_handle)
        elif self.state is TaskState.PROCESSING:
            body["progress"] = self.progress
            if self.task_handle is not None:
                body["taskHandle"] = str(self.task_handle)
        elif self.state is TaskState.COMPLETED:
            body["result"] = self.result
        else:
            body["detail"] = self.detail
        return body
