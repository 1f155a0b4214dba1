"""Host resource sampling for CPU and memory utilization."""

from __future__ import annotations

import asyncio
import dataclasses
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

import psutil

from carbonlint.errors import MetricsUnavailableError
from carbonlint.utils.logger import Logger

_BYTES_PER_MB = 1024 * 1024


@dataclass(frozen=True)
class HostMetrics:
    """Raw figures returned by a metrics provider."""

    cpu_load_percent: float
    core_count: int
    mem_total_bytes: int
    mem_used_bytes: int
    mem_free_bytes: int
    cpu_user_percent: float = 0.0
    cpu_system_percent: float = 0.0


class MetricsProvider(Protocol):
    """Anything that can report host CPU and memory figures.

    Implementations raise ``MetricsUnavailableError`` when the host cannot
    be queried.
    """

    def query(self) -> HostMetrics: ...


class PsutilMetricsProvider:
    """Metrics provider backed by psutil."""

    def __init__(self) -> None:
        # psutil reports CPU load relative to the previous call; prime it so
        # the first real query is not a meaningless 0.0.
        psutil.cpu_percent(interval=None)
        psutil.cpu_times_percent(interval=None)

    def query(self) -> HostMetrics:
        """Query CPU load and virtual memory.

        Raises
        ------
        MetricsUnavailableError
            If psutil cannot read the host counters.
        """
        try:
            cpu_load = psutil.cpu_percent(interval=None)
            cpu_times = psutil.cpu_times_percent(interval=None)
            memory = psutil.virtual_memory()
            cores = psutil.cpu_count(logical=True) or 0
        except (psutil.Error, OSError) as exc:
            raise MetricsUnavailableError(f"psutil query failed: {exc}") from exc

        return HostMetrics(
            cpu_load_percent=float(cpu_load),
            core_count=cores,
            mem_total_bytes=memory.total,
            mem_used_bytes=memory.used,
            mem_free_bytes=memory.free,
            cpu_user_percent=float(getattr(cpu_times, "user", 0.0)),
            cpu_system_percent=float(getattr(cpu_times, "system", 0.0)),
        )


@dataclass(frozen=True)
class SystemStats:
    """Snapshot of host utilization.

    Attributes:
        timestamp: Unix timestamp the snapshot was served at.
        cpu_utilization: System-wide CPU load, 0-100.
        cpu_cores: Logical core count.
        cpu_user: User CPU time share, 0-100.
        cpu_system: System CPU time share, 0-100.
        memory_total_mb: Total memory in MB.
        memory_used_mb: Used memory in MB.
        memory_free_mb: Free memory in MB.
        memory_percent: Used memory as a percentage of total.
        degraded: True when the query failed and the figures are zeros.
    """

    timestamp: float
    cpu_utilization: float = 0.0
    cpu_cores: int = 0
    cpu_user: float = 0.0
    cpu_system: float = 0.0
    memory_total_mb: float = 0.0
    memory_used_mb: float = 0.0
    memory_free_mb: float = 0.0
    memory_percent: float = 0.0
    degraded: bool = False

    @classmethod
    def zeroed(cls, timestamp: float) -> SystemStats:
        """Return the all-zero stats served when the host cannot be queried."""
        return cls(timestamp=timestamp, degraded=True)

    @classmethod
    def from_host_metrics(cls, metrics: HostMetrics, timestamp: float) -> SystemStats:
        """Convert raw provider figures into stats."""
        total_mb = round(metrics.mem_total_bytes / _BYTES_PER_MB)
        used_mb = round(metrics.mem_used_bytes / _BYTES_PER_MB)
        percent = (
            metrics.mem_used_bytes / metrics.mem_total_bytes * 100.0
            if metrics.mem_total_bytes > 0
            else 0.0
        )
        return cls(
            timestamp=timestamp,
            cpu_utilization=metrics.cpu_load_percent,
            cpu_cores=metrics.core_count,
            cpu_user=metrics.cpu_user_percent,
            cpu_system=metrics.cpu_system_percent,
            memory_total_mb=total_mb,
            memory_used_mb=used_mb,
            memory_free_mb=round(metrics.mem_free_bytes / _BYTES_PER_MB),
            memory_percent=round(percent, 1),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert the snapshot to a JSON-serializable dictionary."""
        return {
            "timestamp": datetime.fromtimestamp(self.timestamp).isoformat(),
            "cpu": {
                "utilization": self.cpu_utilization,
                "cores": self.cpu_cores,
                "user": self.cpu_user,
                "system": self.cpu_system,
            },
            "memory": {
                "total_mb": self.memory_total_mb,
                "used_mb": self.memory_used_mb,
                "free_mb": self.memory_free_mb,
                "usage_percent": self.memory_percent,
            },
            "disk": {"read_mb": 0.0, "write_mb": 0.0},
            "network": {"rx_mb": 0.0, "tx_mb": 0.0},
            "gpu": {"utilization": 0.0, "name": "N/A"},
            "degraded": self.degraded,
        }


class Sampler:
    """Serve host utilization snapshots with a short-lived cache.

    Snapshots requested within ``ttl_seconds`` of the last successful query
    reuse it with a fresh timestamp. A failed query yields zeroed stats
    instead of an exception, so a profiling session can always finish.
    """

    def __init__(
        self,
        provider: MetricsProvider | None = None,
        ttl_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._provider = provider if provider is not None else PsutilMetricsProvider()
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._cached: SystemStats | None = None
        self._cached_at = 0.0
        self._log = Logger.module("monitoring")

    async def snapshot(self) -> SystemStats:
        """Return current host stats; never raises."""
        now = self._clock()
        if self._cached is not None and (now - self._cached_at) < self.ttl_seconds:
            return dataclasses.replace(self._cached, timestamp=time.time())

        try:
            metrics = await asyncio.to_thread(self._provider.query)
        except MetricsUnavailableError as exc:
            self._log.warning(f"Metrics unavailable, recording zeros: {exc}")
            return SystemStats.zeroed(time.time())
        except Exception:
            self._log.warning("Metrics provider failed, recording zeros", exc_info=True)
            return SystemStats.zeroed(time.time())

        stats = SystemStats.from_host_metrics(metrics, time.time())
        self._cached = stats
        self._cached_at = now
        return stats

    def invalidate(self) -> None:
        """Drop the cached snapshot."""
        self._cached = None
        self._cached_at = 0.0
