"""Tests for the profiling session state machine."""

import asyncio
import dataclasses
import time

import pytest

from carbonlint.carbon.session import (
    DEFAULT_BRANCH,
    DEFAULT_COMMAND,
    DEFAULT_COMMIT,
    DEFAULT_PROJECT,
    SamplingFailurePolicy,
    SessionController,
    aggregate_samples,
)
from carbonlint.errors import AlreadyActiveError, NotActiveError
from carbonlint.models.carbon_models import Sample
from carbonlint.monitoring import SystemStats

FAST = 0.01


class FakeSampler:
    """Sampler stand-in serving fixed stats, optionally held behind a gate."""

    def __init__(self, stats=None, gate=None):
        self.stats = stats or SystemStats(
            timestamp=0.0,
            cpu_utilization=50.0,
            memory_used_mb=1000.0,
            memory_percent=25.0,
        )
        self.gate = gate
        self.calls = 0

    async def snapshot(self):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        return dataclasses.replace(self.stats, timestamp=time.time())


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


async def _wait_for_samples(controller, count, timeout=2.0):
    deadline = time.monotonic() + timeout
    while controller.status().sample_count < count:
        if time.monotonic() > deadline:
            raise AssertionError(f"expected {count} samples in {timeout}s")
        await asyncio.sleep(FAST)


class TestAggregateSamples:
    """Tests for sample aggregation."""

    def test_empty(self):
        """No samples aggregate to zeros."""
        assert aggregate_samples([]) == (0.0, 0.0, 0.0)

    def test_mean_and_peak(self):
        """CPU and memory percent are averaged, memory MB is the peak."""
        samples = [
            Sample(1.0, 20.0, 1000.0, 30.0),
            Sample(2.0, 60.0, 3000.0, 50.0),
            Sample(3.0, 40.0, 2000.0, 40.0),
        ]
        assert aggregate_samples(samples) == (40.0, 3000.0, 40.0)


class TestSessionController:
    """Tests for start/stop/status transitions."""

    def test_interval_must_be_positive(self):
        """A zero interval is rejected."""
        with pytest.raises(ValueError):
            SessionController(sampler=FakeSampler(), interval=0)

    def test_status_when_idle(self):
        """Idle status reports inactive and nothing else."""
        controller = SessionController(sampler=FakeSampler())
        status = controller.status()
        assert status.active is False
        assert status.to_dict() == {"active": False}

    @pytest.mark.asyncio
    async def test_start_returns_session_info(self):
        """start() hands back a fresh id and start time."""
        controller = SessionController(sampler=FakeSampler(), interval=10)
        info = await controller.start(command="make")
        try:
            assert info.session_id.startswith("cl_")
            assert len(info.session_id.rsplit("_", 1)[1]) == 6
            assert controller.active
            assert controller.status().session_id == info.session_id
        finally:
            await controller.stop()

    @pytest.mark.asyncio
    async def test_start_twice_raises(self):
        """A second start fails and leaves the first session active."""
        controller = SessionController(sampler=FakeSampler(), interval=10)
        first = await controller.start()

        with pytest.raises(AlreadyActiveError, match=first.session_id):
            await controller.start()

        assert controller.status().session_id == first.session_id
        await controller.stop()

    @pytest.mark.asyncio
    async def test_stop_when_idle_raises(self):
        """stop() without a session fails."""
        controller = SessionController(sampler=FakeSampler())
        with pytest.raises(NotActiveError):
            await controller.stop()

    @pytest.mark.asyncio
    async def test_stop_without_samples(self):
        """Stopping before the first tick yields zero aggregates."""
        controller = SessionController(sampler=FakeSampler(), interval=10)
        await controller.start()
        result = await controller.stop()

        assert result.sample_count == 0
        assert result.samples == []
        assert result.resources.cpu_utilization == 0.0
        assert result.resources.memory_peak_mb == 0.0
        assert result.metrics.cpu_utilization == 0.0
        assert not controller.active

    @pytest.mark.asyncio
    async def test_placeholders_for_missing_metadata(self):
        """Unset or empty metadata uses placeholder values."""
        controller = SessionController(sampler=FakeSampler(), interval=10)
        await controller.start(command="", project=None)
        result = await controller.stop()

        assert result.command == DEFAULT_COMMAND
        assert result.project == DEFAULT_PROJECT
        assert result.branch == DEFAULT_BRANCH
        assert result.commit == DEFAULT_COMMIT

    @pytest.mark.asyncio
    async def test_metadata_is_kept(self):
        """Given metadata ends up on the result."""
        controller = SessionController(sampler=FakeSampler(), interval=10)
        await controller.start(
            command="pytest", project="api", branch="dev", commit="deadbeef"
        )
        result = await controller.stop()

        assert (result.command, result.project) == ("pytest", "api")
        assert (result.branch, result.commit) == ("dev", "deadbeef")

    @pytest.mark.asyncio
    async def test_samples_collected_and_aggregated(self):
        """Ticks produce ordered samples that feed the aggregates."""
        controller = SessionController(sampler=FakeSampler(), interval=FAST)
        await controller.start()
        await _wait_for_samples(controller, 3)
        result = await controller.stop()

        assert result.sample_count >= 3
        assert result.sample_count == len(result.samples)
        assert result.resources.cpu_utilization == pytest.approx(50.0)
        assert result.resources.memory_peak_mb == 1000.0
        assert result.resources.memory_avg_percent == pytest.approx(25.0)
        timestamps = [s.timestamp for s in result.samples]
        assert timestamps == sorted(timestamps)

    @pytest.mark.asyncio
    async def test_cpu_time_split(self):
        """CPU time is split 70/30 between user and system."""
        clock = FakeClock()
        controller = SessionController(
            sampler=FakeSampler(), interval=FAST, clock=clock
        )
        await controller.start()
        await _wait_for_samples(controller, 1)
        clock.now = 10.0
        result = await controller.stop()

        assert result.resources.wall_time == 10.0
        assert result.duration_ms == 10_000.0
        assert result.resources.cpu_time_user == pytest.approx(3.5)
        assert result.resources.cpu_time_system == pytest.approx(1.5)

    @pytest.mark.asyncio
    async def test_status_counts_samples(self):
        """Active status reports elapsed time and sample count."""
        controller = SessionController(sampler=FakeSampler(), interval=FAST)
        await controller.start()
        await _wait_for_samples(controller, 2)

        status = controller.status()
        assert status.active is True
        assert status.sample_count >= 2
        assert status.elapsed_ms > 0
        await controller.stop()

    @pytest.mark.asyncio
    async def test_restart_after_stop(self):
        """A stopped controller can start a new session."""
        controller = SessionController(sampler=FakeSampler(), interval=10)
        first = await controller.start()
        await controller.stop()
        second = await controller.start()
        await controller.stop()
        assert first.session_id != second.session_id

    @pytest.mark.asyncio
    async def test_late_sample_is_discarded(self):
        """A query that resolves after stop never reaches the result."""
        gate = asyncio.Event()
        sampler = FakeSampler(gate=gate)
        controller = SessionController(sampler=sampler, interval=FAST)
        await controller.start()

        while sampler.calls == 0:
            await asyncio.sleep(FAST)
        result = await controller.stop()

        gate.set()
        await asyncio.sleep(FAST * 5)

        assert result.sample_count == 0
        assert result.samples == []
        assert controller.status().active is False


class TestSamplingFailurePolicy:
    """Tests for failed-tick handling."""

    @pytest.mark.asyncio
    async def test_record_keeps_zeroed_samples(self):
        """RECORD counts failed ticks as zero readings."""
        sampler = FakeSampler(stats=SystemStats.zeroed(0.0))
        controller = SessionController(sampler=sampler, interval=FAST)
        await controller.start()
        await _wait_for_samples(controller, 2)
        result = await controller.stop()

        assert result.sample_count >= 2
        assert result.resources.cpu_utilization == 0.0

    @pytest.mark.asyncio
    async def test_drop_excludes_failed_samples(self):
        """DROP leaves failed ticks out of the buffer."""
        sampler = FakeSampler(stats=SystemStats.zeroed(0.0))
        controller = SessionController(
            sampler=sampler,
            interval=FAST,
            failure_policy=SamplingFailurePolicy.DROP,
        )
        await controller.start()
        while sampler.calls < 3:
            await asyncio.sleep(FAST)
        result = await controller.stop()

        assert result.sample_count == 0

    def test_policy_accepts_string(self):
        """The policy can be given by value."""
        controller = SessionController(sampler=FakeSampler(), failure_policy="drop")
        assert controller.failure_policy is SamplingFailurePolicy.DROP
