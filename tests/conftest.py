"""Shared fixtures for carbonlint tests."""

from datetime import UTC, datetime, timedelta

import pytest

from carbonlint.carbon.calculator import classify_impact, compute_equivalents
from carbonlint.models.carbon_models import (
    CarbonResult,
    EnergyBreakdown,
    ResourceUsage,
    Run,
)

BASE_TIME = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def make_run():
    """Factory for runs with controllable carbon, energy and start time."""

    def _make(
        run_id="run-001",
        grams=1.0,
        kwh=0.002,
        project="demo",
        minutes=0,
        cpu=25.0,
        memory=40.0,
        wall_time=60.0,
    ):
        return Run(
            id=run_id,
            project=project,
            command="pytest",
            branch="main",
            commit="abc1234",
            timestamp=(BASE_TIME + timedelta(minutes=minutes)).isoformat(),
            resources=ResourceUsage(
                wall_time=wall_time,
                cpu_utilization=cpu,
                memory_avg_percent=memory,
                memory_peak_mb=2048,
            ),
            energy=EnergyBreakdown(cpu_kwh=kwh, total_kwh=kwh),
            carbon=CarbonResult(
                total_grams=grams, region="GLOBAL-AVG", intensity=475, pue=1.0
            ),
            impact=classify_impact(grams),
            equivalents=compute_equivalents(grams),
            sample_count=60,
        )

    return _make
