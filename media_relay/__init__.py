"""Media relay package.

Forwards browser requests to third-party generative-media APIs (video,
script, voice) and returns normalized JSON. Long-running video jobs go
through ``AsyncTaskOrchestrator``, which submits a job, checks its status,
and optionally waits for a terminal state.
"""

from .errors import (
    InvalidArgument,
    ProviderContractViolation,
    ProviderRejected,
    ProviderUnavailable,
    RelayError,
    Timeout,
)
from .models import JobSpec, TaskHandle, TaskState, TaskStatus
from .orchestrator import AsyncTaskOrchestrator

__all__ = [
    "AsyncTaskOrchestrator",
    "InvalidArgument",
    "JobSpec",
    "ProviderContractViolation",
    "ProviderRejected",
    "ProviderUnavailable",
    "RelayError",
    "TaskHandle",
    "TaskState",
    "TaskStatus",
    "Timeout",
]
