"""
Cancellable polling schedule.

``PollSchedule`` yields attempt numbers with a fixed delay between them and
stops on an attempt bound, a wall-clock deadline, or cancellation. Time is
read through a ``Clock`` so tests can drive the loop with ``VirtualClock``
instead of sleeping for real.
"""

import asyncio
import logging
import time
from typing import AsyncIterator, List, Optional

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative cancellation flag that also wakes pending sleeps."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise asyncio.CancelledError("poll schedule cancelled")

    async def wait(self) -> None:
        await self._event.wait()


class Clock:
    """Real time source."""

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float, token: Optional[CancellationToken] = None) -> None:
        if token is None:
            await asyncio.sleep(seconds)
            return
        # Sleep, but wake as soon as the token fires
        try:
            await asyncio.wait_for(token.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return


class VirtualClock(Clock):
    """Clock whose sleeps advance virtual time immediately."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def monotonic(self) -> float:
        return self.now

    async def sleep(self, seconds: float, token: Optional[CancellationToken] = None) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        # Still yield to the loop so cancellation can land here
        await asyncio.sleep(0)


class PollSchedule:
    """Async iterator of poll attempts.

    Sleeps *interval* seconds between attempts (never before the first).
    At least one of *max_attempts* or *deadline* (seconds from the first
    attempt) must be given.
    """

    def __init__(
        self,
        interval: float,
        max_attempts: Optional[int] = None,
        deadline: Optional[float] = None,
        clock: Optional[Clock] = None,
        token: Optional[CancellationToken] = None,
    ):
        if max_attempts is None and deadline is None:
            raise ValueError("PollSchedule needs max_attempts or deadline")
        if interval < 0:
            raise ValueError("interval must be non-negative")
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if deadline is not None and deadline <= 0:
            raise ValueError("deadline must be positive")
        self.interval = interval
        self.max_attempts = max_attempts
        self.deadline = deadline
        self.clock = clock or Clock()
        self.token = token
        self.attempts = 0

    @property
    def exhausted(self) -> bool:
        return self.max_attempts is not None and self.attempts >= self.max_attempts

    async def __aiter__(self) -> AsyncIterator[int]:
        started_at = self.clock.monotonic()
        while not self.exhausted:
            if self.token is not None:
                self.token.raise_if_cancelled()

            if self.attempts > 0:
                if self.deadline is not None and (self.clock.monotonic() - started_at) + self.interval > self.deadline:
                    logger.debug(f"[SCHEDULE] Deadline of {self.deadline}s reached after {self.attempts} attempts")
                    return
                await self.clock.sleep(self.interval, self.token)
                if self.token is not None:
                    self.token.raise_if_cancelled()

            self.attempts += 1
            yield self.attempts
