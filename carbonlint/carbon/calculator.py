"""Energy, carbon and impact calculations from aggregated utilization.

The model is a static estimate: each component draws its nameplate
wattage scaled by its utilization. It is not a metered reading.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from carbonlint.carbon.grid_intensity import resolve_region
from carbonlint.carbon.hardware import resolve_hardware_profile
from carbonlint.models.carbon_models import (
    CarbonResult,
    EnergyBreakdown,
    Equivalents,
    ImpactLevel,
    UtilizationMetrics,
    coerce_number,
)

# Reference emissions in gCO2e for one unit of each activity.
SMARTPHONE_CHARGE_G = 8.22
SEARCH_QUERY_G = 0.2
KM_DRIVEN_G = 120.0
STREAMING_HOUR_G = 36.0
TREE_DAY_G = 22.0

# Upper bounds (exclusive) of the LOW, MEDIUM and HIGH buckets in grams.
_IMPACT_BOUNDS: tuple[tuple[float, ImpactLevel], ...] = (
    (1.0, ImpactLevel.LOW),
    (10.0, ImpactLevel.MEDIUM),
    (100.0, ImpactLevel.HIGH),
)


def _component_kwh(watts: float, utilization: float, hours: float) -> float:
    # An overflowed product times a zero factor would be NaN.
    if watts <= 0 or utilization <= 0 or hours <= 0:
        return 0.0
    return (watts * (utilization / 100.0) * hours) / 1000.0


def compute_energy(
    metrics: UtilizationMetrics | Mapping[str, Any] | None,
    duration_seconds: Any,
    hardware_profile: str | None = "default",
) -> EnergyBreakdown:
    """Estimate per-component energy for a utilization profile.

    Parameters
    ----------
    metrics : UtilizationMetrics | Mapping | None
        Average utilization percentages. Mappings may use snake_case or
        camelCase keys; missing or malformed values count as 0.
    duration_seconds : float
        Length of the measured window. Malformed values count as 0.
    hardware_profile : str | None
        Hardware profile name. Unknown names use the ``default`` profile.

    Returns
    -------
    EnergyBreakdown
        Energy per component and in total, in kWh.
    """
    if not isinstance(metrics, UtilizationMetrics):
        metrics = UtilizationMetrics.from_mapping(metrics)

    _, profile = resolve_hardware_profile(hardware_profile)
    hours = coerce_number(duration_seconds) / 3600.0

    cpu = _component_kwh(profile.cpu_tdp, metrics.cpu_utilization, hours)
    gpu = (
        _component_kwh(profile.gpu_tdp, metrics.gpu_utilization, hours)
        if metrics.gpu_utilization > 0
        else 0.0
    )
    memory = _component_kwh(profile.memory_watts, metrics.memory_usage_percent, hours)
    disk = _component_kwh(profile.disk_watts, metrics.disk_activity, hours)
    network = _component_kwh(profile.network_watts, metrics.network_activity, hours)

    return EnergyBreakdown(
        cpu_kwh=cpu,
        gpu_kwh=gpu,
        memory_kwh=memory,
        disk_kwh=disk,
        network_kwh=network,
        total_kwh=cpu + gpu + memory + disk + network,
    )


def compute_carbon(
    total_kwh: Any, region: str | None = "GLOBAL-AVG", pue: Any = 1.0
) -> CarbonResult:
    """Estimate emissions for an amount of energy on a regional grid.

    Parameters
    ----------
    total_kwh : float
        Energy drawn by the workload in kWh.
    region : str | None
        Grid region code. Unknown codes use the global average.
    pue : float
        Power usage effectiveness multiplier for facility overhead.

    Returns
    -------
    CarbonResult
        Grams of CO2e together with the region, intensity and PUE used.
    """
    code, entry = resolve_region(region)
    energy = coerce_number(total_kwh)
    effective_pue = coerce_number(pue)

    return CarbonResult(
        total_grams=energy * effective_pue * entry.gco2_kwh,
        region=code,
        intensity=entry.gco2_kwh,
        pue=effective_pue,
    )


def classify_impact(grams: Any) -> ImpactLevel:
    """Bucket an emissions figure into an impact level.

    LOW below 1 g, MEDIUM below 10 g, HIGH below 100 g, EXTREME otherwise.
    """
    value = coerce_number(grams)
    for bound, level in _IMPACT_BOUNDS:
        if value < bound:
            return level
    return ImpactLevel.EXTREME


def compute_equivalents(grams: Any) -> Equivalents:
    """Express emissions as counts of everyday activities."""
    value = coerce_number(grams)
    return Equivalents(
        smartphone_charges=value / SMARTPHONE_CHARGE_G,
        search_queries=value / SEARCH_QUERY_G,
        km_driven=value / KM_DRIVEN_G,
        hours_streaming_video=value / STREAMING_HOUR_G,
        tree_days_absorption=value / TREE_DAY_G,
    )


def humanize(co2_grams: float) -> str:
    """Create a human-relatable comparison for CO2 emissions.

    Parameters
    ----------
    co2_grams : float
        CO2 emissions in grams.

    Returns
    -------
    str
        A comparison string (e.g. "like charging your phone 3 times").
    """
    equivalents = compute_equivalents(co2_grams)

    if co2_grams < SMARTPHONE_CHARGE_G / 2:
        return f"like {equivalents.search_queries:.0f} web searches"

    if co2_grams < STREAMING_HOUR_G:
        charges = equivalents.smartphone_charges
        if charges < 1.5:
            return "like charging your phone once"
        return f"like charging your phone {charges:.0f} times"

    if co2_grams < KM_DRIVEN_G:
        return f"like {equivalents.hours_streaming_video:.1f} hours of video streaming"

    return f"like driving {equivalents.km_driven:.1f} km"
