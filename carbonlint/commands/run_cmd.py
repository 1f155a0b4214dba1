"""Profiling command implementations: run a child command or sample for a window."""

from __future__ import annotations

import asyncio
import shlex
import sys

from carbonlint import config
from carbonlint.carbon.analysis import check_thresholds
from carbonlint.carbon.session import SessionController
from carbonlint.carbon.store import RunStore, SettingsStore
from carbonlint.carbon.tracker import CarbonTracker
from carbonlint.errors import CarbonLintError
from carbonlint.models.carbon_models import Run
from carbonlint.report import RunReport, get_output_format
from carbonlint.utils.logger import Logger

# Exit code used when a run breaks its carbon or energy budget.
THRESHOLD_EXIT_CODE = 2


def _make_tracker() -> CarbonTracker:
    controller = SessionController(interval=config.sample_interval())
    return CarbonTracker(
        controller=controller, run_store=RunStore(), settings_store=SettingsStore()
    )


async def _track_subprocess(
    tracker: CarbonTracker,
    argv: tuple[str, ...],
    project: str | None,
    branch: str | None,
    commit: str | None,
) -> int:
    proc = await asyncio.create_subprocess_exec(*argv)
    async with tracker.track(
        command=shlex.join(argv), project=project, branch=branch, commit=commit
    ):
        try:
            return await proc.wait()
        except asyncio.CancelledError:
            proc.terminate()
            await proc.wait()
            raise


async def _track_window(
    tracker: CarbonTracker,
    duration: float,
    project: str | None,
    branch: str | None,
    commit: str | None,
) -> None:
    async with tracker.track(project=project, branch=branch, commit=commit):
        await asyncio.sleep(duration)


def _recorded_run(tracker: CarbonTracker) -> Run:
    """Return the run saved by the last session.

    Raises
    ------
    CarbonLintError
        If the session finished without recording a run.
    """
    if tracker.last_run is None:
        raise CarbonLintError("Profiling finished without recording a run")
    return tracker.last_run


def _report(run: Run, output: str | None, fmt: str | None, title: str) -> bool:
    """Print or write the run report; return True if the budget check fails."""
    verdict = check_thresholds(run, SettingsStore().load())
    report = RunReport([run], thresholds=[verdict], title=title)

    out_format = get_output_format(output, fmt)
    if output:
        report.emit(output, out_format)
        print(f"Report written to {output}")
    else:
        report.emit(sys.stdout, out_format)

    return verdict.should_fail


def run_command(
    argv: tuple[str, ...],
    project: str | None = None,
    branch: str | None = None,
    commit: str | None = None,
    output: str | None = None,
    fmt: str | None = None,
) -> int:
    """Run ``argv`` as a child process while profiling the host.

    Parameters
    ----------
    argv : tuple[str, ...]
        Command and arguments to execute.
    project, branch, commit : str | None
        Run metadata; placeholders are used when unset.
    output : str | None
        Write the report to this file instead of stdout.
    fmt : str | None
        Explicit report format; inferred from ``output`` otherwise.

    Returns
    -------
    int
        The child's exit code, or ``THRESHOLD_EXIT_CODE`` when the child
        succeeded but the run broke its budget and failing is enabled.

    Raises
    ------
    FileNotFoundError
        If the command cannot be found.
    """
    log = Logger.get("commands.run")
    tracker = _make_tracker()

    log.info(f"Profiling: {shlex.join(argv)}")
    returncode = asyncio.run(_track_subprocess(tracker, argv, project, branch, commit))

    run = _recorded_run(tracker)
    failed = _report(run, output, fmt, title="carbonlint run")

    if returncode != 0:
        log.warning(f"Command exited with code {returncode}")
        return returncode
    if failed:
        return THRESHOLD_EXIT_CODE
    return 0


def run_profile(
    duration: float,
    project: str | None = None,
    branch: str | None = None,
    commit: str | None = None,
    output: str | None = None,
    fmt: str | None = None,
) -> int:
    """Sample the host for ``duration`` seconds and record a run.

    Returns
    -------
    int
        0, or ``THRESHOLD_EXIT_CODE`` when the run broke its budget and
        failing is enabled.
    """
    log = Logger.get("commands.profile")
    tracker = _make_tracker()

    log.info(f"Profiling host for {duration:g}s")
    asyncio.run(_track_window(tracker, duration, project, branch, commit))

    run = _recorded_run(tracker)
    failed = _report(run, output, fmt, title="carbonlint profile")
    return THRESHOLD_EXIT_CODE if failed else 0
