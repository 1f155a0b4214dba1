"""Run comparison, carbon budget checks and optimization suggestions."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from carbonlint.carbon.grid_intensity import CARBON_INTENSITY
from carbonlint.models.carbon_models import Run, Settings

# Fraction of the carbon budget above which a run is flagged as a warning.
WARNING_RATIO = 0.8

HIGH_INTENSITY_REGIONS = frozenset({"GLOBAL-AVG", "ASIA-SOUTH"})
GREENEST_REGION = "EU-NORTH"


# ============================================================================
# Comparison
# ============================================================================


class MetricDelta(BaseModel):
    """Change in one metric between a base run and a head run."""

    base: float
    head: float
    diff: float = Field(..., description="head - base")
    percent: float = Field(..., description="diff as a percent of base, 0 if base is 0")


class RunComparison(BaseModel):
    """Side-by-side comparison of two runs."""

    base_id: str
    head_id: str
    carbon_grams: MetricDelta
    energy_kwh: MetricDelta
    wall_time_s: MetricDelta
    improved: bool = Field(..., description="True when head emits less than base")


def _delta(base: float, head: float) -> MetricDelta:
    diff = head - base
    percent = diff / base * 100.0 if base > 0 else 0.0
    return MetricDelta(base=base, head=head, diff=diff, percent=percent)


def compare_runs(base: Run, head: Run) -> RunComparison:
    """Compare a head run against a base run."""
    carbon = _delta(base.carbon.total_grams, head.carbon.total_grams)
    return RunComparison(
        base_id=base.id,
        head_id=head.id,
        carbon_grams=carbon,
        energy_kwh=_delta(base.energy.total_kwh, head.energy.total_kwh),
        wall_time_s=_delta(base.resources.wall_time, head.resources.wall_time),
        improved=carbon.percent < 0,
    )


# ============================================================================
# Thresholds
# ============================================================================


class ThresholdStatus(str, Enum):
    """Verdict of a run against its budget."""

    PASS = "PASS"
    WARNING = "WARNING"
    FAIL = "FAIL"


class ThresholdReport(BaseModel):
    """Verdict of a run against the configured carbon and energy budget."""

    run_id: str
    status: ThresholdStatus
    carbon_grams: float
    max_carbon: float
    energy_kwh: float
    max_energy: float
    should_fail: bool = Field(
        ..., description="True when the verdict is fail and failing is enabled"
    )
    reasons: list[str] = Field(default_factory=list)


def check_thresholds(run: Run, settings: Settings) -> ThresholdReport:
    """Check a run against the per-run carbon and energy limits.

    The run fails when it exceeds either limit and warns when its carbon
    is above ``WARNING_RATIO`` of the carbon limit.
    """
    carbon = run.carbon.total_grams
    energy = run.energy.total_kwh
    reasons: list[str] = []

    if carbon > settings.max_carbon:
        reasons.append(
            f"carbon {carbon:.4f} g exceeds limit {settings.max_carbon:g} g"
        )
    if energy > settings.max_energy:
        reasons.append(
            f"energy {energy:.6f} kWh exceeds limit {settings.max_energy:g} kWh"
        )

    if reasons:
        status = ThresholdStatus.FAIL
    elif carbon > settings.max_carbon * WARNING_RATIO:
        status = ThresholdStatus.WARNING
        reasons.append(
            f"carbon {carbon:.4f} g is above {WARNING_RATIO:.0%} of the limit"
        )
    else:
        status = ThresholdStatus.PASS

    return ThresholdReport(
        run_id=run.id,
        status=status,
        carbon_grams=carbon,
        max_carbon=settings.max_carbon,
        energy_kwh=energy,
        max_energy=settings.max_energy,
        should_fail=status is ThresholdStatus.FAIL and settings.fail_on_threshold,
        reasons=reasons,
    )


def budget_usage(runs: Sequence[Run], settings: Settings) -> float:
    """Return total carbon of ``runs`` as a percent of one run's limit, capped at 100."""
    if settings.max_carbon <= 0:
        return 100.0 if runs else 0.0
    total = sum(r.carbon.total_grams for r in runs)
    return min(total / settings.max_carbon * 100.0, 100.0)


# ============================================================================
# Suggestions
# ============================================================================


class Suggestion(BaseModel):
    """An optimization hint derived from run history."""

    id: str
    title: str
    description: str
    severity: Literal["low", "medium", "high", "critical"]
    impact_grams: float = Field(..., ge=0, description="Estimated saving in gCO2e")
    tags: list[str] = Field(default_factory=list)


def generate_suggestions(runs: Sequence[Run], settings: Settings) -> list[Suggestion]:
    """Derive optimization suggestions from run history.

    Returns an empty list when suggestions are disabled or there are no
    runs to learn from.
    """
    if not settings.suggestions_enabled or not runs:
        return []

    count = len(runs)
    avg_cpu = sum(r.resources.cpu_utilization for r in runs) / count
    avg_memory = sum(r.resources.memory_avg_percent for r in runs) / count
    avg_carbon = sum(r.carbon.total_grams for r in runs) / count

    suggestions: list[Suggestion] = []

    if avg_cpu > 70:
        suggestions.append(
            Suggestion(
                id="high-cpu",
                title="High CPU Utilization Detected",
                description=(
                    f"Average CPU usage across runs is {avg_cpu:.1f}%. "
                    "Consider optimizing compute-heavy operations."
                ),
                severity="critical" if avg_cpu > 90 else "high",
                impact_grams=avg_cpu * 0.01,
                tags=["cpu", "performance"],
            )
        )

    if avg_memory > 60:
        suggestions.append(
            Suggestion(
                id="high-memory",
                title="High Memory Usage",
                description=(
                    f"Average memory usage is {avg_memory:.1f}%. "
                    "Consider memory optimization or batch processing."
                ),
                severity="high" if avg_memory > 80 else "medium",
                impact_grams=avg_memory * 0.005,
                tags=["memory", "optimization"],
            )
        )

    region = settings.region.upper()
    if region in HIGH_INTENSITY_REGIONS:
        greenest = CARBON_INTENSITY[GREENEST_REGION]
        suggestions.append(
            Suggestion(
                id="region-optimize",
                title="Consider Lower-Carbon Region",
                description=(
                    f"Your current region ({region}) has higher grid carbon "
                    f"intensity. {GREENEST_REGION} ({greenest.region}) has "
                    f"{greenest.gco2_kwh:g} gCO2/kWh."
                ),
                severity="medium",
                impact_grams=avg_carbon * 0.5,
                tags=["region", "infrastructure"],
            )
        )

    suggestions.append(
        Suggestion(
            id="batch-processing",
            title="Use Batch Processing",
            description=(
                "Combine multiple small runs into fewer larger batches to "
                "reduce overhead energy consumption."
            ),
            severity="low",
            impact_grams=avg_carbon * 0.1,
            tags=["efficiency", "best-practice"],
        )
    )
    suggestions.append(
        Suggestion(
            id="caching",
            title="Implement Result Caching",
            description=(
                "Cache frequently computed results to avoid redundant "
                "processing and reduce energy usage."
            ),
            severity="low",
            impact_grams=0.05,
            tags=["caching", "optimization"],
        )
    )

    return suggestions
