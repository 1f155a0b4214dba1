"""Data models for carbonlint."""

from carbonlint.models.carbon_models import (
    CarbonIntensityEntry,
    CarbonResult,
    EnergyBreakdown,
    Equivalents,
    HardwareProfile,
    ImpactLevel,
    ProfilingResult,
    ResourceUsage,
    Run,
    Sample,
    SessionInfo,
    SessionStatus,
    Settings,
    StatsSummary,
    UtilizationMetrics,
)

__all__ = [
    "CarbonIntensityEntry",
    "CarbonResult",
    "EnergyBreakdown",
    "Equivalents",
    "HardwareProfile",
    "ImpactLevel",
    "ProfilingResult",
    "ResourceUsage",
    "Run",
    "Sample",
    "SessionInfo",
    "SessionStatus",
    "Settings",
    "StatsSummary",
    "UtilizationMetrics",
]
