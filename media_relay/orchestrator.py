"""
Asynchronous task orchestration for external generation providers.
Submits jobs, checks their status, and optionally waits for a terminal state.

The orchestrator is stateless: every call is one independent outbound
request (or a strictly sequential series of them for the waiting variant)
and nothing about a job is remembered between calls. Vendor differences
live entirely in the ``ProviderAdapter`` it is given.
"""

import logging
from typing import Any, Optional, Union

import httpx

from .errors import (
    InvalidArgument,
    ProviderContractViolation,
    ProviderRejected,
    ProviderUnavailable,
    Timeout,
)
from .logging_config import set_current_task
from .models import JobSpec, TaskHandle, TaskState, TaskStatus
from .providers.base import ProviderAdapter
from .scheduling import CancellationToken, Clock, PollSchedule

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def _response_body(resp: httpx.Response) -> Any:
    """Decoded JSON body, or the raw text when it is not JSON."""
    try:
        return resp.json()
    except ValueError:
        return resp.text


class AsyncTaskOrchestrator:
    def __init__(
        self,
        adapter: ProviderAdapter,
        client: httpx.AsyncClient,
        clock: Optional[Clock] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.adapter = adapter
        self.client = client
        self.clock = clock or Clock()
        self.timeout = timeout

    @property
    def provider_name(self) -> str:
        return self.adapter.name

    async def submit(self, job: JobSpec) -> TaskHandle:
        """Create exactly one provider job and return its handle. Never retries."""
        if job is None or not isinstance(job.prompt, str) or not job.prompt.strip():
            raise InvalidArgument("Prompt is required")

        url, headers, payload = self.adapter.build_submit_request(job)
        logger.info(f"[SUBMIT] {self.provider_name} request to {url}")
        logger.debug(f"[SUBMIT] Payload: {payload}")

        try:
            resp = await self.client.post(url, headers=headers, json=payload, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.error(f"[SUBMIT] {self.provider_name} transport error: {e}")
            raise ProviderRejected(f"{self.provider_name} submission failed: {e}", payload={"exception": type(e).__name__})

        body = _response_body(resp)

        if resp.is_error:
            logger.error(f"[SUBMIT] {self.provider_name} error {resp.status_code}: {body}")
            raise ProviderRejected(f"{self.provider_name} rejected the job (HTTP {resp.status_code})", payload=body)

        embedded_error = self.adapter.extract_error(body)
        if embedded_error is not None:
            logger.error(f"[SUBMIT] {self.provider_name} create error: {embedded_error}")
            raise ProviderRejected(f"{self.provider_name} rejected the job", payload=embedded_error)

        task_id = self.adapter.extract_task_id(body) if isinstance(body, dict) else None
        if not task_id:
            logger.error(f"[SUBMIT] {self.provider_name} accepted the job but returned no id: {body}")
            raise ProviderContractViolation(f"{self.provider_name} response is missing the job identifier", payload=body)

        handle = self.adapter.handle(str(task_id))
        set_current_task(handle.task_id, self.provider_name)
        logger.info(f"[SUBMIT] {self.provider_name} task submitted: {handle.task_id}")
        return handle

    async def poll(self, task_handle: Union[TaskHandle, str]) -> TaskStatus:
        """Single point-in-time status check."""
        handle = self._coerce_handle(task_handle)
        set_current_task(handle.task_id, self.provider_name)

        url, headers = self.adapter.build_status_request(handle.task_id)
        try:
            resp = await self.client.get(url, headers=headers, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.error(f"[POLL] {self.provider_name} task {handle.task_id} transport error: {e}")
            raise ProviderUnavailable(f"{self.provider_name} status check failed: {e}", payload={"exception": type(e).__name__})

        body = _response_body(resp)

        if resp.is_error:
            logger.error(f"[POLL] {self.provider_name} task {handle.task_id} status error {resp.status_code}: {body}")
            raise ProviderUnavailable(f"{self.provider_name} status check failed (HTTP {resp.status_code})", payload=body)

        embedded_error = self.adapter.extract_error(body)
        if embedded_error is not None:
            logger.error(f"[POLL] {self.provider_name} task {handle.task_id} polling failed: {embedded_error}")
            raise ProviderUnavailable(f"{self.provider_name} status check failed", payload=embedded_error)

        if not isinstance(body, dict):
            raise ProviderContractViolation(f"{self.provider_name} status response is not a JSON object", payload=body)

        status = self.adapter.normalize_status(handle, body)
        if status.state is TaskState.COMPLETED and not status.result:
            logger.error(f"[POLL] {self.provider_name} task {handle.task_id} completed without an output: {body}")
            raise ProviderContractViolation(f"{self.provider_name} reported success but returned no output", payload=body)
        logger.debug(f"[POLL] {self.provider_name} task {handle.task_id} status: {status.state.value} ({status.progress:.2f})")
        if status.is_terminal:
            logger.info(f"[POLL] {self.provider_name} task {handle.task_id} reached {status.state.value}")
        return status

    async def await_task(
        self,
        task_handle: Union[TaskHandle, str],
        poll_interval_ms: int,
        max_attempts: Optional[int],
        max_wait_seconds: Optional[float] = None,
        token: Optional[CancellationToken] = None,
    ) -> TaskStatus:
        """Poll sequentially until terminal or the bound is exhausted.

        Also used to resume waiting on a handle whose earlier wait timed out.
        """
        handle = self._coerce_handle(task_handle)
        schedule = self._build_schedule(poll_interval_ms, max_attempts, max_wait_seconds, token)
        return await self._wait(handle, schedule)

    async def submit_and_await(
        self,
        job: JobSpec,
        poll_interval_ms: int,
        max_attempts: Optional[int],
        max_wait_seconds: Optional[float] = None,
        token: Optional[CancellationToken] = None,
    ) -> TaskStatus:
        """Bounded blocking variant: submit, then wait for a terminal status.

        Wait bounds are checked before submission so a bad bound never
        leaves behind a provider job nobody holds a handle for.
        """
        schedule = self._build_schedule(poll_interval_ms, max_attempts, max_wait_seconds, token)
        handle = await self.submit(job)
        return await self._wait(handle, schedule)

    def _build_schedule(
        self,
        poll_interval_ms: int,
        max_attempts: Optional[int],
        max_wait_seconds: Optional[float],
        token: Optional[CancellationToken],
    ) -> PollSchedule:
        try:
            return PollSchedule(
                interval=poll_interval_ms / 1000.0,
                max_attempts=max_attempts,
                deadline=max_wait_seconds,
                clock=self.clock,
                token=token,
            )
        except (TypeError, ValueError) as e:
            raise InvalidArgument(f"Invalid wait bounds: {e}", payload={
                "poll_interval_ms": poll_interval_ms,
                "max_attempts": max_attempts,
                "max_wait_seconds": max_wait_seconds,
            })

    async def _wait(self, handle: TaskHandle, schedule: PollSchedule) -> TaskStatus:
        last_status: Optional[TaskStatus] = None
        async for attempt in schedule:
            last_status = await self.poll(handle)
            if last_status.is_terminal:
                logger.info(f"[AWAIT] Task {handle.task_id} finished as {last_status.state.value} after {attempt} poll(s)")
                return last_status
            logger.debug(f"[AWAIT] Task {handle.task_id} still processing after poll {attempt}")

        logger.warning(f"[AWAIT] Task {handle.task_id} not finished after {schedule.attempts} poll(s)")
        raise Timeout(
            f"Video generation timed out after {schedule.attempts} status checks",
            task_handle=handle,
            payload=last_status.to_dict() if last_status else None,
        )

    def _coerce_handle(self, task_handle: Union[TaskHandle, str]) -> TaskHandle:
        if isinstance(task_handle, TaskHandle):
            task_id = task_handle.task_id
        else:
            task_id = task_handle
        if not isinstance(task_id, str) or not task_id.strip():
            raise InvalidArgument("Task handle is required")
        return self.adapter.handle(task_id.strip())
