"""CarbonTracker: profiling sessions turned into saved runs."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from carbonlint.carbon.calculator import (
    classify_impact,
    compute_carbon,
    compute_energy,
    compute_equivalents,
)
from carbonlint.carbon.session import SessionController
from carbonlint.carbon.store import RunStore, SettingsStore
from carbonlint.models.carbon_models import (
    ProfilingResult,
    Run,
    SessionInfo,
    SessionStatus,
    Settings,
)
from carbonlint.utils.logger import Logger


def build_run(result: ProfilingResult, settings: Settings) -> Run:
    """Convert an aggregated session into a run using the given settings."""
    energy = compute_energy(
        result.metrics, result.resources.wall_time, settings.hardware_profile
    )
    carbon = compute_carbon(energy.total_kwh, settings.region, settings.pue)
    return Run(
        id=result.id,
        project=result.project,
        command=result.command,
        branch=result.branch,
        commit=result.commit,
        timestamp=result.timestamp,
        resources=result.resources,
        energy=energy,
        carbon=carbon,
        impact=classify_impact(carbon.total_grams),
        equivalents=compute_equivalents(carbon.total_grams),
        sample_count=result.sample_count,
    )


class CarbonTracker:
    """Start and stop profiling sessions and record them as runs.

    Parameters
    ----------
    controller : SessionController | None
        Session state machine. A psutil-backed controller by default.
    run_store : RunStore | None
        Where finished runs are saved.
    settings_store : SettingsStore | None
        Source of region, PUE and hardware profile, read at each stop.

    Examples
    --------
    >>> tracker = CarbonTracker()
    >>> async with tracker.track(command="pytest"):
    ...     await run_workload()
    >>> tracker.last_run.impact
    <ImpactLevel.LOW: 'LOW'>
    """

    def __init__(
        self,
        controller: SessionController | None = None,
        run_store: RunStore | None = None,
        settings_store: SettingsStore | None = None,
    ) -> None:
        self.controller = controller if controller is not None else SessionController()
        self.run_store = run_store if run_store is not None else RunStore()
        self.settings_store = (
            settings_store if settings_store is not None else SettingsStore()
        )
        self.last_run: Run | None = None
        self._log = Logger.module("carbon.tracker")

    async def start_session(
        self,
        command: str | None = None,
        project: str | None = None,
        branch: str | None = None,
        commit: str | None = None,
    ) -> SessionInfo:
        """Begin a profiling session.

        Raises
        ------
        AlreadyActiveError
            If a session is already running.
        """
        return await self.controller.start(
            command=command, project=project, branch=branch, commit=commit
        )

    async def stop_session(self) -> Run:
        """End the session, estimate its footprint and save the run.

        Raises
        ------
        NotActiveError
            If no session is running.
        OSError
            If the run cannot be written to history.
        """
        result = await self.controller.stop()
        settings = self.settings_store.load()
        run = build_run(result, settings)
        self.run_store.save_run(run)
        self.last_run = run
        self._log.info(
            f"Run {run.id}: {run.energy.total_kwh:.8f} kWh, "
            f"{run.carbon.total_grams:.4f} gCO2e ({run.impact.value})"
        )
        return run

    def get_status(self) -> SessionStatus:
        """Describe the current session, if any. Never raises."""
        return self.controller.status()

    @asynccontextmanager
    async def track(
        self,
        command: str | None = None,
        project: str | None = None,
        branch: str | None = None,
        commit: str | None = None,
    ) -> AsyncIterator[CarbonTracker]:
        """Profile the body of an ``async with`` block.

        The run is saved even if the body raises; it is available as
        ``last_run`` afterwards. When the body raises and saving also
        fails, the save error is logged and the body's exception propagates.
        """
        await self.start_session(
            command=command, project=project, branch=branch, commit=commit
        )
        try:
            yield self
        except BaseException:
            try:
                await self.stop_session()
            except Exception:
                self._log.warning(
                    "Could not record run after workload failure", exc_info=True
                )
            raise
        await self.stop_session()
