"""Energy and carbon estimation for profiled workloads.

This module provides:
- SessionController: Start/stop state machine that samples the host
- compute_energy / compute_carbon: Static TDP-based footprint model
- RunStore / SettingsStore: JSON-backed run history and user settings
- CarbonTracker: Sessions turned into saved runs

Quick Start:
    from carbonlint.carbon import CarbonTracker

    tracker = CarbonTracker()
    async with tracker.track(command="make test"):
        await run_workload()
    print(tracker.last_run.carbon.total_grams)
"""

from carbonlint.carbon.analysis import (
    RunComparison,
    Suggestion,
    ThresholdReport,
    ThresholdStatus,
    budget_usage,
    check_thresholds,
    compare_runs,
    generate_suggestions,
)
from carbonlint.carbon.calculator import (
    classify_impact,
    compute_carbon,
    compute_energy,
    compute_equivalents,
    humanize,
)
from carbonlint.carbon.grid_intensity import list_regions, resolve_region
from carbonlint.carbon.hardware import list_hardware_profiles, resolve_hardware_profile
from carbonlint.carbon.session import SamplingFailurePolicy, SessionController
from carbonlint.carbon.store import RunStore, SettingsStore, load_settings, save_settings
from carbonlint.carbon.tracker import CarbonTracker, build_run

__all__ = [
    "CarbonTracker",
    "RunComparison",
    "RunStore",
    "SamplingFailurePolicy",
    "SessionController",
    "SettingsStore",
    "Suggestion",
    "ThresholdReport",
    "ThresholdStatus",
    "budget_usage",
    "build_run",
    "check_thresholds",
    "classify_impact",
    "compare_runs",
    "compute_carbon",
    "compute_energy",
    "compute_equivalents",
    "generate_suggestions",
    "humanize",
    "list_hardware_profiles",
    "list_regions",
    "load_settings",
    "resolve_hardware_profile",
    "resolve_region",
    "save_settings",
]
