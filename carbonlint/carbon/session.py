"""Profiling session state machine.

A :class:`SessionController` is either idle or owns exactly one active
:class:`Session`. While active, a ticker task dispatches one sampler query
per interval; each query runs as its own task and emits its sample onto the
session's queue. Stopping cancels the ticker, drains the queue in order and
collapses the samples into aggregate metrics.

Everything runs on one asyncio event loop. A query still in flight when the
session stops is left to finish and its sample is dropped.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from carbonlint.errors import AlreadyActiveError, NotActiveError
from carbonlint.models.carbon_models import (
    ProfilingResult,
    ResourceUsage,
    Sample,
    SessionInfo,
    SessionStatus,
    UtilizationMetrics,
)
from carbonlint.monitoring import Sampler, SystemStats
from carbonlint.utils.logger import Logger

DEFAULT_COMMAND = "manual profiling"
DEFAULT_PROJECT = "CarbonLint Dashboard"
DEFAULT_BRANCH = "main"
DEFAULT_COMMIT = "N/A"

# Share of estimated CPU time attributed to user and system mode.
USER_CPU_SHARE = 0.7
SYSTEM_CPU_SHARE = 0.3


class SamplingFailurePolicy(str, Enum):
    """What to do with a tick whose metrics query failed.

    RECORD keeps the zeroed sample, so the failure pulls averages down.
    DROP leaves it out of the buffer and out of the averages.
    """

    RECORD = "record"
    DROP = "drop"


@dataclass
class Session:
    """An in-flight profiling window."""

    id: str
    start_time: float
    start_timestamp: str
    command: str
    project: str
    branch: str
    commit: str
    samples: list[Sample] = field(default_factory=list)
    queue: asyncio.Queue[Sample] = field(default_factory=asyncio.Queue)
    closed: bool = False

    def drain(self) -> None:
        """Move every queued sample into ``samples``, keeping order."""
        while not self.queue.empty():
            self.samples.append(self.queue.get_nowait())

    @property
    def sample_count(self) -> int:
        """Samples recorded so far, including those not yet drained."""
        return len(self.samples) + self.queue.qsize()


def _new_session_id() -> str:
    return f"cl_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


def aggregate_samples(samples: list[Sample]) -> tuple[float, float, float]:
    """Collapse samples into (mean CPU %, peak memory MB, mean memory %).

    All three are 0 for an empty list.
    """
    if not samples:
        return 0.0, 0.0, 0.0
    count = len(samples)
    avg_cpu = sum(s.cpu_utilization_percent for s in samples) / count
    peak_memory = max(s.memory_used_mb for s in samples)
    avg_memory_percent = sum(s.memory_percent for s in samples) / count
    return avg_cpu, peak_memory, avg_memory_percent


class SessionController:
    """Own at most one profiling session and drive its sampling.

    Parameters
    ----------
    sampler : Sampler | None
        Source of host snapshots. A psutil-backed sampler by default.
    interval : float
        Seconds between sampling ticks.
    failure_policy : SamplingFailurePolicy
        Whether zeroed samples from failed queries are kept.
    clock : Callable[[], float]
        Monotonic clock used for elapsed time.
    """

    def __init__(
        self,
        sampler: Sampler | None = None,
        interval: float = 1.0,
        failure_policy: SamplingFailurePolicy = SamplingFailurePolicy.RECORD,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be greater than zero")
        self._sampler = sampler if sampler is not None else Sampler()
        self.interval = interval
        self.failure_policy = SamplingFailurePolicy(failure_policy)
        self._clock = clock
        self._session: Session | None = None
        self._ticker: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[None]] = set()
        self._log = Logger.module("carbon.session")

    @property
    def active(self) -> bool:
        """Whether a session is in progress."""
        return self._session is not None

    async def start(
        self,
        command: str | None = None,
        project: str | None = None,
        branch: str | None = None,
        commit: str | None = None,
    ) -> SessionInfo:
        """Open a session and begin sampling.

        Unset or empty metadata fields take placeholder values.

        Raises
        ------
        AlreadyActiveError
            If a session is already active. The active session is untouched.
        """
        if self._session is not None:
            raise AlreadyActiveError(self._session.id)

        session = Session(
            id=_new_session_id(),
            start_time=self._clock(),
            start_timestamp=datetime.now(UTC).isoformat(),
            command=command or DEFAULT_COMMAND,
            project=project or DEFAULT_PROJECT,
            branch=branch or DEFAULT_BRANCH,
            commit=commit or DEFAULT_COMMIT,
        )
        self._session = session
        self._ticker = asyncio.create_task(
            self._tick_loop(session), name=f"carbonlint-ticker-{session.id}"
        )
        self._log.info(f"Session {session.id} started: {session.command}")
        return SessionInfo(
            session_id=session.id, start_timestamp=session.start_timestamp
        )

    async def stop(self) -> ProfilingResult:
        """Close the active session and aggregate its samples.

        Raises
        ------
        NotActiveError
            If no session is active.
        """
        session = self._session
        if session is None:
            raise NotActiveError()

        ticker = self._ticker
        self._session = None
        self._ticker = None
        session.closed = True
        if ticker is not None:
            ticker.cancel()

        elapsed = max(self._clock() - session.start_time, 0.0)
        session.drain()

        if ticker is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await ticker

        result = self._build_result(session, elapsed)
        self._log.info(
            f"Session {session.id} stopped after {elapsed:.1f}s "
            f"with {result.sample_count} samples"
        )
        return result

    def status(self) -> SessionStatus:
        """Describe the controller state without changing it."""
        session = self._session
        if session is None:
            return SessionStatus(active=False)
        return SessionStatus(
            active=True,
            session_id=session.id,
            start_timestamp=session.start_timestamp,
            elapsed_ms=(self._clock() - session.start_time) * 1000.0,
            sample_count=session.sample_count,
        )

    async def _tick_loop(self, session: Session) -> None:
        """Dispatch one sampler query per interval until cancelled."""
        while True:
            await asyncio.sleep(self.interval)
            task = asyncio.create_task(self._collect(session))
            # Hold a reference so the query is not garbage collected mid-flight.
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)

    async def _collect(self, session: Session) -> None:
        stats = await self._sampler.snapshot()
        if session.closed:
            self._log.debug(f"Discarding late sample for {session.id}")
            return
        if stats.degraded and self.failure_policy is SamplingFailurePolicy.DROP:
            self._log.debug(f"Dropping failed sample for {session.id}")
            return
        session.queue.put_nowait(_sample_from_stats(stats))

    def _build_result(self, session: Session, elapsed: float) -> ProfilingResult:
        avg_cpu, peak_memory, avg_memory_percent = aggregate_samples(session.samples)
        cpu_seconds = (avg_cpu / 100.0) * elapsed

        resources = ResourceUsage(
            wall_time=elapsed,
            cpu_utilization=avg_cpu,
            cpu_time_user=cpu_seconds * USER_CPU_SHARE,
            cpu_time_system=cpu_seconds * SYSTEM_CPU_SHARE,
            memory_peak_mb=peak_memory,
            memory_avg_percent=avg_memory_percent,
        )
        metrics = UtilizationMetrics(
            cpu_utilization=avg_cpu,
            memory_usage_percent=avg_memory_percent,
        )
        return ProfilingResult(
            id=session.id,
            project=session.project,
            command=session.command,
            branch=session.branch,
            commit=session.commit,
            timestamp=session.start_timestamp,
            resources=resources,
            metrics=metrics,
            sample_count=len(session.samples),
            duration_ms=elapsed * 1000.0,
            samples=list(session.samples),
        )


def _sample_from_stats(stats: SystemStats) -> Sample:
    return Sample(
        timestamp=stats.timestamp,
        cpu_utilization_percent=stats.cpu_utilization,
        memory_used_mb=stats.memory_used_mb,
        memory_percent=stats.memory_percent,
    )
