"""Data models for profiling sessions, runs and settings.

Records that are persisted (runs, settings) are Pydantic models so that
data read back from disk is validated. Values that only live in memory
during a session are plain dataclasses.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ============================================================================
# Static lookup tables
# ============================================================================


@dataclass(frozen=True)
class HardwareProfile:
    """Nameplate power figures for a class of machine.

    Attributes:
        cpu_tdp: CPU thermal design power in watts.
        gpu_tdp: GPU thermal design power in watts (0 when there is none).
        memory_watts: Memory subsystem draw at full utilization.
        disk_watts: Disk draw at full activity.
        network_watts: Network interface draw at full activity.
    """

    cpu_tdp: float
    gpu_tdp: float
    memory_watts: float
    disk_watts: float
    network_watts: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "cpu_tdp": self.cpu_tdp,
            "gpu_tdp": self.gpu_tdp,
            "memory_watts": self.memory_watts,
            "disk_watts": self.disk_watts,
            "network_watts": self.network_watts,
        }


@dataclass(frozen=True)
class CarbonIntensityEntry:
    """Grid carbon intensity for one region."""

    gco2_kwh: float
    region: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {"gco2_kwh": self.gco2_kwh, "region": self.region}


# ============================================================================
# Session-time values
# ============================================================================


@dataclass(frozen=True)
class Sample:
    """A single utilization reading taken during a session.

    Attributes:
        timestamp: Unix timestamp of collection.
        cpu_utilization_percent: System-wide CPU load, 0-100.
        memory_used_mb: Memory in use in megabytes.
        memory_percent: Memory in use as a percentage of total.
    """

    timestamp: float
    cpu_utilization_percent: float
    memory_used_mb: float
    memory_percent: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "timestamp": self.timestamp,
            "cpu_utilization_percent": round(self.cpu_utilization_percent, 2),
            "memory_used_mb": round(self.memory_used_mb, 1),
            "memory_percent": round(self.memory_percent, 2),
        }


# Original camelCase metric names, accepted alongside snake_case.
_METRIC_ALIASES = {
    "cpu_utilization": "cpuUtilization",
    "memory_usage_percent": "memoryUsagePercent",
    "gpu_utilization": "gpuUtilization",
    "disk_activity": "diskActivity",
    "network_activity": "networkActivity",
}


def coerce_number(value: Any) -> float:
    """Return ``value`` as a finite non-negative float, or 0.0 if it is not one."""
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


@dataclass(frozen=True)
class UtilizationMetrics:
    """Aggregated utilization percentages consumed by the energy model."""

    cpu_utilization: float = 0.0
    memory_usage_percent: float = 0.0
    gpu_utilization: float = 0.0
    disk_activity: float = 0.0
    network_activity: float = 0.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> UtilizationMetrics:
        """Build metrics from a loose mapping.

        Missing, non-numeric and negative entries become 0. Both snake_case
        and camelCase keys are recognised.
        """
        data = data or {}
        values = {}
        for name, alias in _METRIC_ALIASES.items():
            raw = data.get(name, data.get(alias))
            values[name] = coerce_number(raw)
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "cpu_utilization": self.cpu_utilization,
            "memory_usage_percent": self.memory_usage_percent,
            "gpu_utilization": self.gpu_utilization,
            "disk_activity": self.disk_activity,
            "network_activity": self.network_activity,
        }


@dataclass(frozen=True)
class SessionInfo:
    """Returned when a session starts."""

    session_id: str
    start_timestamp: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {"session_id": self.session_id, "start_timestamp": self.start_timestamp}


@dataclass(frozen=True)
class SessionStatus:
    """Snapshot of the controller state."""

    active: bool
    session_id: str | None = None
    start_timestamp: str | None = None
    elapsed_ms: float | None = None
    sample_count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary, omitting idle fields."""
        if not self.active:
            return {"active": False}
        return {
            "active": True,
            "session_id": self.session_id,
            "start_timestamp": self.start_timestamp,
            "elapsed_ms": round(self.elapsed_ms or 0.0, 1),
            "sample_count": self.sample_count,
        }


@dataclass
class ProfilingResult:
    """Aggregated outcome of a stopped session, before energy conversion.

    Attributes:
        id: Session id, reused as the run id.
        project: Project name.
        command: Profiled command or description.
        branch: VCS branch.
        commit: VCS commit.
        timestamp: ISO 8601 start time of the session.
        resources: Aggregated resource usage.
        metrics: Utilization figures fed to the energy model.
        sample_count: Number of samples that went into the aggregates.
        duration_ms: Elapsed wall time in milliseconds.
        samples: The raw samples, in collection order.
    """

    id: str
    project: str
    command: str
    branch: str
    commit: str
    timestamp: str
    resources: ResourceUsage
    metrics: UtilizationMetrics
    sample_count: int
    duration_ms: float
    samples: list[Sample] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "id": self.id,
            "project": self.project,
            "command": self.command,
            "branch": self.branch,
            "commit": self.commit,
            "timestamp": self.timestamp,
            "resources": self.resources.model_dump(),
            "metrics": self.metrics.to_dict(),
            "sample_count": self.sample_count,
            "duration_ms": round(self.duration_ms, 1),
        }


# ============================================================================
# Persisted records
# ============================================================================


class ImpactLevel(str, Enum):
    """Coarse bucket for a run's emissions."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    EXTREME = "EXTREME"


class ResourceUsage(BaseModel):
    """Aggregated resource usage over a session."""

    model_config = ConfigDict(frozen=True)

    wall_time: float = Field(0.0, ge=0, description="Elapsed wall time in seconds")
    cpu_utilization: float = Field(0.0, ge=0, description="Mean CPU utilization %")
    cpu_time_user: float = Field(0.0, ge=0, description="Estimated user CPU seconds")
    cpu_time_system: float = Field(
        0.0, ge=0, description="Estimated system CPU seconds"
    )
    memory_peak_mb: float = Field(0.0, ge=0, description="Peak memory used in MB")
    memory_avg_percent: float = Field(0.0, ge=0, description="Mean memory used %")
    disk_read_mb: float = Field(0.0, ge=0, description="Disk read in MB")
    disk_write_mb: float = Field(0.0, ge=0, description="Disk written in MB")
    net_recv_mb: float = Field(0.0, ge=0, description="Network received in MB")
    net_sent_mb: float = Field(0.0, ge=0, description="Network sent in MB")
    gpu_utilization: float = Field(0.0, ge=0, description="Mean GPU utilization %")


class EnergyBreakdown(BaseModel):
    """Per-component energy estimate in kWh."""

    model_config = ConfigDict(frozen=True)

    cpu_kwh: float = Field(0.0, ge=0)
    gpu_kwh: float = Field(0.0, ge=0)
    memory_kwh: float = Field(0.0, ge=0)
    disk_kwh: float = Field(0.0, ge=0)
    network_kwh: float = Field(0.0, ge=0)
    total_kwh: float = Field(0.0, ge=0)


class CarbonResult(BaseModel):
    """Carbon estimate for a quantity of energy on a given grid."""

    model_config = ConfigDict(frozen=True)

    total_grams: float = Field(0.0, ge=0, description="Emissions in gCO2e")
    region: str = Field(..., description="Region code used for the lookup")
    intensity: float = Field(..., ge=0, description="Grid intensity in gCO2/kWh")
    pue: float = Field(1.0, ge=0, description="Power usage effectiveness applied")


class Equivalents(BaseModel):
    """Emissions expressed as everyday activities."""

    model_config = ConfigDict(frozen=True)

    smartphone_charges: float = 0.0
    search_queries: float = 0.0
    km_driven: float = 0.0
    hours_streaming_video: float = 0.0
    tree_days_absorption: float = 0.0


class Run(BaseModel):
    """Immutable record of one completed profiling session."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique run id")
    project: str
    command: str
    branch: str
    commit: str
    timestamp: str = Field(..., description="ISO 8601 session start time")
    resources: ResourceUsage = Field(default_factory=ResourceUsage)
    energy: EnergyBreakdown = Field(default_factory=EnergyBreakdown)
    carbon: CarbonResult
    impact: ImpactLevel
    equivalents: Equivalents = Field(default_factory=Equivalents)
    sample_count: int = Field(0, ge=0)

    @field_validator("timestamp")
    @classmethod
    def _check_timestamp(cls, value: str) -> str:
        parse_timestamp(value)
        return value

    @property
    def started_at(self) -> datetime:
        """Session start time as a datetime."""
        return parse_timestamp(self.timestamp)


class Settings(BaseModel):
    """User settings. Stored with the camelCase keys of the settings file."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    region: str = "GLOBAL-AVG"
    pue: float = Field(1.0, ge=0)
    hardware_profile: str = Field("default", alias="hardwareProfile")
    max_carbon: float = Field(100.0, ge=0, alias="maxCarbon")
    max_energy: float = Field(0.5, ge=0, alias="maxEnergy")
    fail_on_threshold: bool = Field(True, alias="failOnThreshold")
    suggestions_enabled: bool = Field(True, alias="suggestionsEnabled")

    def to_dict(self) -> dict[str, Any]:
        """Return the record as it is written to disk."""
        return self.model_dump(by_alias=True)


@dataclass
class StatsSummary:
    """Totals and trend across the run history.

    Attributes:
        total_runs: Number of runs in history.
        total_carbon: Sum of carbon grams.
        total_energy: Sum of energy in kWh.
        avg_carbon: Mean carbon grams per run.
        trend: Percent change of the 10 newest runs' mean carbon against the
            10 runs before them. Negative means emissions are going down.
    """

    total_runs: int = 0
    total_carbon: float = 0.0
    total_energy: float = 0.0
    avg_carbon: float = 0.0
    trend: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "total_runs": self.total_runs,
            "total_carbon": round(self.total_carbon, 2),
            "total_energy": round(self.total_energy, 5),
            "avg_carbon": round(self.avg_carbon, 2),
            "trend": round(self.trend, 1),
        }


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO 8601 timestamp, accepting a trailing ``Z``.

    Naive values are taken as UTC so that they compare with the aware
    timestamps written by the session controller.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
