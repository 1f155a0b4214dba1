"""Run history CLI command implementations."""

from __future__ import annotations

import asyncio
import json
import sys
from datetime import datetime

from carbonlint.carbon.analysis import (
    MetricDelta,
    ThresholdStatus,
    budget_usage,
    check_thresholds,
    compare_runs,
    generate_suggestions,
)
from carbonlint.carbon.store import RunStore, SettingsStore
from carbonlint.errors import RunNotFoundError
from carbonlint.report import (
    HEADING_UNDERLINE,
    SECTION_SEP,
    OutputFormat,
    RunReport,
    get_output_format,
)


def show_host_stats(output_json: bool) -> None:
    """Print a single snapshot of host utilization."""
    from carbonlint.monitoring import Sampler

    stats = asyncio.run(Sampler().snapshot())

    if output_json:
        print(json.dumps(stats.to_dict(), indent=2))
        return

    print(SECTION_SEP)
    print("  current host utilization")
    print(SECTION_SEP)
    print(f"\n  CPU:      {stats.cpu_utilization:.1f} % ({stats.cpu_cores} cores)")
    print(f"  User:     {stats.cpu_user:.1f} %")
    print(f"  System:   {stats.cpu_system:.1f} %")
    print(
        f"  Memory:   {stats.memory_used_mb:.0f} / {stats.memory_total_mb:.0f} MB "
        f"({stats.memory_percent:.1f} %)"
    )
    if stats.degraded:
        print("\n  Host metrics were unavailable; figures are zero.")


def show_history(
    project: str | None,
    since: datetime | None,
    until: datetime | None,
    limit: int | None,
    output_json: bool,
) -> None:
    """Display runs matching the filters, newest first."""
    runs = RunStore().get_runs(project=project, start=since, end=until, limit=limit)

    if output_json:
        print(json.dumps([r.model_dump(mode="json") for r in runs], indent=2))
        return

    if not runs:
        print("No runs found.")
        print("\n  Profile a command with: carbonlint run -- <command>")
        return

    report = RunReport(runs, title="carbonlint history", detailed=False)
    report.emit(sys.stdout, OutputFormat.TEXT)


def show_run(
    run_id: str, output: str | None, fmt: str | None, output_json: bool
) -> None:
    """Display a single run in detail.

    Raises
    ------
    RunNotFoundError
        If the id is not in history.
    """
    run = RunStore().require_run(run_id)
    verdict = check_thresholds(run, SettingsStore().load())
    report = RunReport([run], thresholds=[verdict], title="carbonlint run")

    out_format = get_output_format(output, "json" if output_json else fmt)
    if output:
        report.emit(output, out_format)
        print(f"Report written to {output}")
    else:
        report.emit(sys.stdout, out_format)


def delete_run(run_id: str) -> None:
    """Remove a run from history.

    Raises
    ------
    RunNotFoundError
        If the id is not in history.
    """
    if not RunStore().delete_run(run_id):
        raise RunNotFoundError(run_id)
    print(f"Deleted run {run_id}")


def show_summary(output_json: bool) -> None:
    """Show totals, trend and budget usage across history."""
    store = RunStore()
    summary = store.get_stats_summary()
    settings = SettingsStore().load()
    recent = store.get_runs(limit=10)
    usage = budget_usage(recent, settings)

    if output_json:
        data = summary.to_dict()
        data["budget_used_percent"] = round(usage, 1)
        print(json.dumps(data, indent=2))
        return

    print(SECTION_SEP)
    print("  carbon summary")
    print(SECTION_SEP)

    if summary.total_runs == 0:
        print("\n  No runs recorded yet.")
        return

    energy_mwh = summary.total_energy * 1_000_000
    print(f"\n  Runs:       {summary.total_runs}")
    print(f"  Energy:     {energy_mwh:.1f} mWh ({summary.total_energy:.8f} kWh)")
    print("\n  [Impact]")
    print(f"  {HEADING_UNDERLINE}")
    print(f"  CO2 total:  {summary.total_carbon:.4f} g")
    print(f"  CO2 avg:    {summary.avg_carbon:.4f} g per run")
    direction = "down" if summary.trend < 0 else "up" if summary.trend > 0 else "flat"
    print(f"  Trend:      {summary.trend:+.1f} % ({direction})")
    print(
        f"  Budget:     {usage:.1f} % of {settings.max_carbon:g} g "
        f"(last {len(recent)} runs)"
    )


def _format_delta(label: str, delta: MetricDelta, precision: int) -> str:
    return (
        f"  {label:<10} {delta.base:>12.{precision}f} {delta.head:>12.{precision}f} "
        f"{delta.diff:>+12.{precision}f} {delta.percent:>+8.1f} %"
    )


def show_comparison(base_id: str, head_id: str, output_json: bool) -> None:
    """Compare two runs.

    Raises
    ------
    RunNotFoundError
        If either id is not in history.
    """
    store = RunStore()
    comparison = compare_runs(store.require_run(base_id), store.require_run(head_id))

    if output_json:
        print(json.dumps(comparison.model_dump(mode="json"), indent=2))
        return

    print(SECTION_SEP)
    print("  run comparison")
    print(SECTION_SEP)
    print(f"\n  Base:     {comparison.base_id}")
    print(f"  Head:     {comparison.head_id}")
    print(f"\n  {'Metric':<10} {'Base':>12} {'Head':>12} {'Diff':>12} {'Change':>10}")
    print(f"  {HEADING_UNDERLINE * 3}")
    print(_format_delta("gCO2", comparison.carbon_grams, 4))
    print(_format_delta("kWh", comparison.energy_kwh, 8))
    print(_format_delta("Seconds", comparison.wall_time_s, 1))

    verdict = "improved" if comparison.improved else "no improvement"
    print(f"\n  Head vs base: {verdict}")


def run_check(run_id: str | None, output_json: bool) -> int:
    """Check a run (the latest by default) against the carbon budget.

    Returns
    -------
    int
        2 when the run fails its budget and failing is enabled, else 0.

    Raises
    ------
    RunNotFoundError
        If ``run_id`` is given but not in history, or history is empty.
    """
    store = RunStore()
    if run_id is not None:
        run = store.require_run(run_id)
    else:
        latest = store.get_runs(limit=1)
        if not latest:
            raise RunNotFoundError("latest")
        run = latest[0]

    verdict = check_thresholds(run, SettingsStore().load())

    if output_json:
        print(json.dumps(verdict.model_dump(mode="json"), indent=2))
    else:
        marker = {
            ThresholdStatus.PASS: "ok",
            ThresholdStatus.WARNING: "warn",
            ThresholdStatus.FAIL: "FAIL",
        }[verdict.status]
        print(SECTION_SEP)
        print(f"  budget check: {verdict.status.value}")
        print(SECTION_SEP)
        print(f"\n  Run:      {verdict.run_id}")
        print(
            f"  Carbon:   {verdict.carbon_grams:.4f} g "
            f"(limit {verdict.max_carbon:g} g)"
        )
        print(
            f"  Energy:   {verdict.energy_kwh:.8f} kWh "
            f"(limit {verdict.max_energy:g} kWh)"
        )
        for reason in verdict.reasons:
            print(f"  [{marker}] {reason}")

    return 2 if verdict.should_fail else 0


def show_suggestions(output_json: bool) -> None:
    """List optimization suggestions derived from recent runs."""
    settings = SettingsStore().load()
    runs = RunStore().get_runs(limit=10)
    suggestions = generate_suggestions(runs, settings)

    if output_json:
        print(json.dumps([s.model_dump(mode="json") for s in suggestions], indent=2))
        return

    if not suggestions:
        if not settings.suggestions_enabled:
            print("Suggestions are disabled.")
            print("\n  Enable with: carbonlint settings --set suggestionsEnabled=true")
        else:
            print("No suggestions yet; profile a few runs first.")
        return

    print(SECTION_SEP)
    print("  optimization suggestions")
    print(SECTION_SEP)
    total = sum(s.impact_grams for s in suggestions)
    for s in suggestions:
        print(f"\n  [{s.severity.upper()}] {s.title}")
        print(f"  {HEADING_UNDERLINE}")
        print(f"  {s.description}")
        print(f"  Potential saving: {s.impact_grams:.3f} gCO2e per run")
        print(f"  Tags: {', '.join(s.tags)}")
    print(f"\n  Combined potential saving: {total:.3f} gCO2e per run")
