"""Bounded fixed-interval completion poller.

Waits for the crawler backend to report ``idle`` after a job was started.
Each tick sleeps a fixed interval and then checks status, at most
``max_attempts`` times.  There is no adaptive backoff; the worst-case wait
is ``max_attempts * interval`` (two minutes by default).

The sleep function and heartbeat callback are injected so tests can run the
full state machine without real waiting::

    poller = CompletionPoller(client, PollPolicy(), sleep=fake_sleep)
    ticks = await poller.wait()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from rednote_sync.config.settings import Settings
from rednote_sync.core.exceptions import PollTimeoutError
from rednote_sync.crawler.models import JobStatus

logger = logging.getLogger(__name__)


class StatusSource(Protocol):
    async def status(self) -> JobStatus: ...


class PollState(str, Enum):
    WAITING = "waiting"
    SUCCEEDED = "succeeded"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class PollPolicy:
    """Polling parameters.

    Attributes:
        max_attempts: Number of status checks before giving up.
        interval: Seconds to sleep before each status check.
        heartbeat_every: A heartbeat is emitted on every tick whose
            zero-based index is a multiple of this value.
    """

    max_attempts: int = 60
    interval: float = 2.0
    heartbeat_every: int = 5

    @classmethod
    def from_settings(cls, settings: Settings) -> PollPolicy:
        return cls(
            max_attempts=settings.crawl_max_poll_attempts,
            interval=settings.crawl_poll_interval_seconds,
            heartbeat_every=settings.crawl_heartbeat_every,
        )


SleepFn = Callable[[float], Awaitable[None]]
HeartbeatFn = Callable[[int], None]


class CompletionPoller:
    """Polls a :class:`StatusSource` until it reports :attr:`JobStatus.IDLE`.

    Args:
        source: Anything with an async ``status()`` method, normally a
            :class:`~rednote_sync.crawler.client.CrawlerClient`.
        policy: Attempt bound, interval and heartbeat cadence.
        sleep: Async sleep function; defaults to :func:`asyncio.sleep`.
        on_heartbeat: Called with the tick index on heartbeat ticks.
    """

    def __init__(
        self,
        source: StatusSource,
        policy: PollPolicy | None = None,
        sleep: SleepFn | None = None,
        on_heartbeat: HeartbeatFn | None = None,
    ) -> None:
        self._source = source
        self.policy = policy or PollPolicy()
        self._sleep = sleep or asyncio.sleep
        self._on_heartbeat = on_heartbeat
        self.state = PollState.WAITING
        self.ticks = 0

    async def wait(self) -> int:
        """Run the poll loop to a terminal state.

        Returns:
            The number of status checks issued (the successful one included).

        Raises:
            PollTimeoutError: If the job is not idle after
                ``policy.max_attempts`` checks.  No further checks are made.
        """
        if self.state is not PollState.WAITING:
            raise RuntimeError(f"poller already finished in state {self.state.value}")

        policy = self.policy
        for tick in range(policy.max_attempts):
            await self._sleep(policy.interval)
            status = await self._source.status()
            self.ticks = tick + 1

            logger.debug(
                "poller: tick=%d/%d status=%s", self.ticks, policy.max_attempts, status.value
            )

            if status is JobStatus.IDLE:
                self.state = PollState.SUCCEEDED
                logger.info("poller: crawler idle after %d checks", self.ticks)
                return self.ticks

            if tick % policy.heartbeat_every == 0 and self._on_heartbeat is not None:
                self._on_heartbeat(tick)

        self.state = PollState.TIMED_OUT
        logger.warning("poller: crawler still busy after %d checks", policy.max_attempts)
        raise PollTimeoutError(policy.max_attempts, policy.interval)
