"""Tests for CarbonTracker and run assembly."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from carbonlint.carbon.session import SessionController
from carbonlint.carbon.store import RunStore, SettingsStore
from carbonlint.carbon.tracker import CarbonTracker, build_run
from carbonlint.errors import AlreadyActiveError, NotActiveError
from carbonlint.models.carbon_models import (
    ImpactLevel,
    ProfilingResult,
    ResourceUsage,
    Settings,
    UtilizationMetrics,
)
from carbonlint.monitoring import SystemStats


class FakeSampler:
    """Sampler stand-in serving fixed stats."""

    def __init__(self, cpu: float = 80.0) -> None:
        self.stats = SystemStats(
            timestamp=0.0, cpu_utilization=cpu, memory_used_mb=512.0, memory_percent=50.0
        )

    async def snapshot(self) -> SystemStats:
        return self.stats


@pytest.fixture
def tracker(tmp_path):
    """Tracker with fast sampling and stores in a temporary directory."""
    controller = SessionController(sampler=FakeSampler(), interval=0.01)
    return CarbonTracker(
        controller=controller,
        run_store=RunStore(base_dir=tmp_path),
        settings_store=SettingsStore(base_dir=tmp_path),
    )


def _profiling_result(cpu: float = 100.0, wall_time: float = 3600.0) -> ProfilingResult:
    return ProfilingResult(
        id="cl_1_abcdef",
        project="api",
        command="make test",
        branch="main",
        commit="N/A",
        timestamp="2026-03-01T12:00:00+00:00",
        resources=ResourceUsage(wall_time=wall_time, cpu_utilization=cpu),
        metrics=UtilizationMetrics(cpu_utilization=cpu),
        sample_count=3600,
        duration_ms=wall_time * 1000,
    )


class TestBuildRun:
    """Tests for converting a profiling result into a run."""

    def test_uses_settings_region_profile_and_pue(self):
        """Energy follows the profile; carbon follows region and PUE."""
        settings = Settings(region="EU-NORTH", hardware_profile="server", pue=2.0)
        run = build_run(_profiling_result(), settings)

        assert run.id == "cl_1_abcdef"
        assert run.energy.cpu_kwh == pytest.approx(0.15)
        assert run.carbon.region == "EU-NORTH"
        assert run.carbon.total_grams == pytest.approx(0.15 * 2.0 * 25)
        assert run.impact == ImpactLevel.MEDIUM
        assert run.equivalents.km_driven == pytest.approx(7.5 / 120)
        assert run.sample_count == 3600

    def test_defaults(self):
        """Default settings use the global average and default profile."""
        run = build_run(_profiling_result(), Settings())
        assert run.carbon.region == "GLOBAL-AVG"
        assert run.energy.cpu_kwh == pytest.approx(0.065)


class TestCarbonTracker:
    """Tests for the session-to-run lifecycle."""

    @pytest.mark.asyncio
    async def test_start_and_stop_saves_run(self, tracker):
        """Stopping produces a saved run with the session id."""
        info = await tracker.start_session(command="pytest", project="api")
        await asyncio.sleep(0.05)
        run = await tracker.stop_session()

        assert run.id == info.session_id
        assert run.command == "pytest"
        assert run.project == "api"
        assert tracker.last_run == run
        assert tracker.run_store.get_run(run.id) == run

    @pytest.mark.asyncio
    async def test_stop_reads_current_settings(self, tracker):
        """Settings saved mid-session apply at stop."""
        await tracker.start_session()
        tracker.settings_store.save({"region": "ASIA-SOUTH", "pue": 1.5})
        run = await tracker.stop_session()

        assert run.carbon.region == "ASIA-SOUTH"
        assert run.carbon.pue == 1.5

    @pytest.mark.asyncio
    async def test_status_follows_session(self, tracker):
        """Status is active only between start and stop."""
        assert tracker.get_status().active is False
        info = await tracker.start_session()
        assert tracker.get_status().session_id == info.session_id
        await tracker.stop_session()
        assert tracker.get_status().active is False

    @pytest.mark.asyncio
    async def test_double_start_raises(self, tracker):
        """A second start fails while a session is running."""
        await tracker.start_session()
        with pytest.raises(AlreadyActiveError):
            await tracker.start_session()
        await tracker.stop_session()

    @pytest.mark.asyncio
    async def test_stop_without_start_raises(self, tracker):
        """Stopping with no session fails and saves nothing."""
        with pytest.raises(NotActiveError):
            await tracker.stop_session()
        assert tracker.run_store.get_runs() == []

    @pytest.mark.asyncio
    async def test_track_context_manager(self, tracker):
        """track() saves a run for the wrapped block."""
        async with tracker.track(command="block") as t:
            assert t is tracker
            await asyncio.sleep(0.05)

        assert tracker.last_run is not None
        assert tracker.last_run.command == "block"
        assert tracker.last_run.sample_count >= 1
        assert tracker.last_run.resources.cpu_utilization == pytest.approx(80.0)

    @pytest.mark.asyncio
    async def test_track_saves_run_on_error(self, tracker):
        """The run is saved even when the block raises."""
        with pytest.raises(RuntimeError):
            async with tracker.track(command="boom"):
                raise RuntimeError("workload failed")

        assert tracker.last_run is not None
        assert tracker.run_store.get_run(tracker.last_run.id) is not None

    @pytest.mark.asyncio
    async def test_save_failure_propagates(self, tracker):
        """History write errors reach the caller."""
        tracker.run_store = MagicMock()
        tracker.run_store.save_run.side_effect = OSError("disk full")

        await tracker.start_session()
        with pytest.raises(OSError, match="disk full"):
            await tracker.stop_session()
        assert tracker.get_status().active is False

    @pytest.mark.asyncio
    async def test_track_keeps_workload_error_when_save_fails(self, tracker):
        """A failing save does not mask the exception raised by the block."""
        tracker.run_store = MagicMock()
        tracker.run_store.save_run.side_effect = OSError("disk full")

        with pytest.raises(RuntimeError, match="workload failed"):
            async with tracker.track(command="boom"):
                raise RuntimeError("workload failed")
        assert tracker.get_status().active is False

    @pytest.mark.asyncio
    async def test_track_save_error_propagates_on_success(self, tracker):
        """Without a workload error, the save error reaches the caller."""
        tracker.run_store = MagicMock()
        tracker.run_store.save_run.side_effect = OSError("disk full")

        with pytest.raises(OSError, match="disk full"):
            async with tracker.track(command="ok"):
                pass

    @pytest.mark.asyncio
    async def test_uses_injected_controller(self, tmp_path):
        """The tracker delegates to its controller."""
        controller = MagicMock()
        controller.start = AsyncMock(return_value="info")
        tracker = CarbonTracker(
            controller=controller,
            run_store=RunStore(base_dir=tmp_path),
            settings_store=SettingsStore(base_dir=tmp_path),
        )

        assert await tracker.start_session(command="x") == "info"
        controller.start.assert_awaited_once_with(
            command="x", project=None, branch=None, commit=None
        )
