"""Per-domain request scheduling.

Each domain gets its own limiter state, created on first use:

- at most one task runs at a time for a domain;
- consecutive task starts are spaced by at least ``60 / rpm`` seconds;
- a reservoir of ``rpm`` tokens is refilled every 60 seconds, so bursts
  beyond the configured rate wait for the next window;
- waiting tasks beyond ``max_queue_size`` are dropped with RateLimitedError.

The limiter only changes *when* a task runs. Whatever the task returns or
raises is handed back to the caller untouched.
"""

import asyncio
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Mapping, TypeVar

from crefeed.engines import events
from crefeed.engines.errors import RateLimitedError
from crefeed.engines.events import EventSink, LoggingEventSink


logger = logging.getLogger(__name__)

T = TypeVar("T")

REFILL_INTERVAL_SECONDS = 60.0
DEFAULT_RPM = 10
DEFAULT_MAX_QUEUE_SIZE = 50


@dataclass
class DomainLimiterState:
    """Scheduling state for one domain.

    Attributes:
        domain: Limiter key (registered domain or host)
        rpm: Requests allowed per refill window
        min_interval: Minimum seconds between task starts
        tokens_remaining: Tokens left in the current window
        window_start: Clock time the current window began
        in_flight: Number of running tasks, never more than 1
        waiting: Number of tasks queued behind the running one
        last_start: Clock time the most recent task started
    """
    domain: str
    rpm: int
    min_interval: float
    tokens_remaining: int
    window_start: float
    in_flight: int = 0
    waiting: int = 0
    last_start: float | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)


class RateLimiter:
    """Schedules async tasks per domain under concurrency and rate bounds.

    Args:
        rpm_by_domain: Requests per minute keyed by domain (case-insensitive)
        default_rpm: Rate used for domains without an explicit entry
        max_queue_size: Waiting tasks allowed per domain before dropping
        event_sink: Receiver for rate limit events
        clock: Monotonic clock, injectable for tests
        sleep: Async sleep, injectable for tests
    """

    def __init__(
        self,
        rpm_by_domain: Mapping[str, int] | None = None,
        default_rpm: int = DEFAULT_RPM,
        max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE,
        event_sink: EventSink | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.rpm_by_domain = {k.lower(): v for k, v in (rpm_by_domain or {}).items()}
        self.default_rpm = default_rpm
        self.max_queue_size = max_queue_size
        self.events = event_sink or LoggingEventSink()
        self.clock = clock
        self.sleep = sleep
        self._states: dict[str, DomainLimiterState] = {}

    def rpm_for(self, domain: str) -> int:
        rpm = self.rpm_by_domain.get(domain.lower(), self.default_rpm)
        return max(1, rpm)

    def get_state(self, domain: str, rpm: int | None = None) -> DomainLimiterState:
        """Return the state for domain, creating it on first use.

        ``rpm`` only applies when the state is created; later calls reuse
        whatever rate the domain started with.
        """
        state = self._states.get(domain)
        if state is None:
            rate = max(1, rpm) if rpm else self.rpm_for(domain)
            state = DomainLimiterState(
                domain=domain,
                rpm=rate,
                min_interval=math.ceil(60_000 / rate) / 1000,
                tokens_remaining=rate,
                window_start=self.clock(),
            )
            self._states[domain] = state
        return state

    async def schedule(
        self,
        domain: str,
        task_id: str,
        fn: Callable[[], Awaitable[T]],
        rpm: int | None = None,
    ) -> T:
        """Run fn once domain's turn arrives and return its result.

        Raises:
            RateLimitedError: If the domain queue is already full.
        """
        state = self.get_state(domain, rpm)

        if state.waiting >= self.max_queue_size:
            self.events.emit(
                events.RATE_LIMIT_DROPPED,
                domain=domain,
                task_id=task_id,
                queued=state.waiting,
            )
            raise RateLimitedError(domain, task_id)

        state.waiting += 1
        try:
            await state.lock.acquire()
        finally:
            state.waiting -= 1

        try:
            await self._wait_for_turn(state, task_id)
            state.tokens_remaining -= 1
            state.last_start = self.clock()
            state.in_flight += 1
            try:
                return await fn()
            finally:
                state.in_flight -= 1
        finally:
            state.lock.release()

    async def _wait_for_turn(self, state: DomainLimiterState, task_id: str) -> None:
        while True:
            now = self.clock()
            if now - state.window_start >= REFILL_INTERVAL_SECONDS:
                state.tokens_remaining = state.rpm
                state.window_start = now

            if state.tokens_remaining <= 0:
                delay = state.window_start + REFILL_INTERVAL_SECONDS - now
            elif state.last_start is not None:
                delay = state.last_start + state.min_interval - now
            else:
                delay = 0.0

            if delay <= 0:
                return

            self.events.emit(
                events.RATE_LIMIT_DELAY,
                domain=state.domain,
                task_id=task_id,
                delay_ms=round(delay * 1000),
            )
            await self.sleep(delay)

    def get_stats(self) -> dict[str, dict[str, float | int]]:
        """Return a snapshot of every tracked domain's limiter state."""
        return {
            domain: {
                "rpm": state.rpm,
                "tokens_remaining": state.tokens_remaining,
                "in_flight": state.in_flight,
                "waiting": state.waiting,
            }
            for domain, state in self._states.items()
        }
