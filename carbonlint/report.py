"""Run report rendering and emission.

Supports multiple output formats: JSON, YAML, and human-readable text.

Usage:
    from carbonlint.report import RunReport, OutputFormat

    report = RunReport([run], summary=store.get_stats_summary())

    # Emit to different formats
    report.emit("run.json", OutputFormat.JSON)
    report.emit("run.yaml", OutputFormat.YAML)
    report.emit(sys.stdout, OutputFormat.TEXT)
"""

import json
import sys
from collections.abc import Sequence
from datetime import UTC, datetime
from enum import Enum
from io import StringIO
from pathlib import Path
from typing import Any, TextIO

from carbonlint.carbon.analysis import ThresholdReport
from carbonlint.carbon.calculator import humanize
from carbonlint.models.carbon_models import Run, StatsSummary

SECTION_SEP = "=" * 40
HEADING_UNDERLINE = "---"


class OutputFormat(Enum):
    """Supported output formats for reports."""

    JSON = "json"
    YAML = "yaml"
    TEXT = "text"  # Human-readable text for stdout


def get_output_format(output: str | None, fmt: str | None) -> OutputFormat:
    """Determine output format from filename or explicit format."""
    if fmt:
        return OutputFormat(fmt.lower())

    if output:
        suffix = Path(output).suffix.lower()
        if suffix == ".json":
            return OutputFormat.JSON
        elif suffix in (".yaml", ".yml"):
            return OutputFormat.YAML

    return OutputFormat.TEXT


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    if seconds < 3600:
        m = int(seconds // 60)
        s = seconds % 60
        return f"{m}m{s:.0f}s"
    h = int(seconds // 3600)
    m = int((seconds % 3600) // 60)
    return f"{h}h{m}m"


class RunReport:
    """One or more runs, with optional summary and budget verdicts.

    Text output renders a single run in detail and several runs as a
    history table, unless ``detailed`` says otherwise.

    Example:
        >>> report = RunReport([run])
        >>> report.emit("run.json", OutputFormat.JSON)
        >>> report.emit(sys.stdout, OutputFormat.TEXT)
    """

    def __init__(
        self,
        runs: Sequence[Run],
        summary: StatsSummary | None = None,
        thresholds: Sequence[ThresholdReport] = (),
        title: str = "carbonlint report",
        detailed: bool | None = None,
    ) -> None:
        self.runs = list(runs)
        self.summary = summary
        self.thresholds = {t.run_id: t for t in thresholds}
        self.title = title
        self.detailed = len(self.runs) == 1 if detailed is None else detailed

    def _get_version(self) -> str:
        try:
            from carbonlint import __version__

            return str(__version__)
        except (ImportError, AttributeError):
            return "unknown"

    def to_dict(self) -> dict[str, Any]:
        """Convert the report to a dictionary for serialization.

        Returns:
            Dictionary with metadata, runs and, when present, the summary
            and threshold verdicts.
        """
        data: dict[str, Any] = {
            "metadata": {
                "generated_at": datetime.now(UTC).isoformat(),
                "carbonlint_version": self._get_version(),
            },
            "runs": [run.model_dump(mode="json") for run in self.runs],
        }
        if self.summary is not None:
            data["summary"] = self.summary.to_dict()
        if self.thresholds:
            data["thresholds"] = [
                t.model_dump(mode="json") for t in self.thresholds.values()
            ]
        return data

    # -------------------------------------------------------------------------
    # Emission Methods
    # -------------------------------------------------------------------------

    def emit(
        self,
        output: str | Path | TextIO,
        format: OutputFormat = OutputFormat.JSON,
        indent: int = 2,
    ) -> None:
        """Emit the report to a file or stream.

        Args:
            output: File path or file-like object (e.g., sys.stdout).
            format: Output format (JSON, YAML, TEXT).
            indent: Indentation level for JSON/YAML.

        Raises:
            ValueError: If format is YAML and pyyaml is not installed.
        """
        if format == OutputFormat.JSON:
            content = self._to_json(indent)
        elif format == OutputFormat.YAML:
            content = self._to_yaml(indent)
        elif format == OutputFormat.TEXT:
            content = self.to_text()
        else:
            raise ValueError(f"Unknown format: {format}")

        self._write_output(output, content)

    def _to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str) + "\n"

    def _to_yaml(self, indent: int = 2) -> str:
        """Convert the report to a YAML string.

        Raises:
            ValueError: If pyyaml is not installed.
        """
        try:
            import yaml  # type: ignore[import-untyped, unused-ignore]
        except ImportError:
            raise ValueError(
                "YAML output requires pyyaml. Install with: pip install pyyaml"
            ) from None

        result: str = yaml.safe_dump(
            self.to_dict(), indent=indent, default_flow_style=False, sort_keys=False
        )
        return result

    def to_text(self) -> str:
        """Render the report as human-readable text."""
        output = StringIO()
        output.write(f"{SECTION_SEP}\n")
        output.write(f"  {self.title}\n")
        output.write(f"{SECTION_SEP}\n")

        if not self.runs:
            output.write("\n  No runs recorded.\n")
        elif self.detailed:
            for run in self.runs:
                self._format_run_text(output, run)
        else:
            self._format_history_text(output)

        if self.summary is not None:
            self._format_summary_text(output, self.summary)

        return output.getvalue()

    def _format_run_text(self, output: StringIO, run: Run) -> None:
        output.write(f"\n  Run:      {run.id}\n")
        output.write(f"  Command:  {run.command}\n")
        output.write(f"  Project:  {run.project}\n")
        output.write(f"  Branch:   {run.branch} ({run.commit})\n")
        output.write(f"  Started:  {run.timestamp}\n")
        output.write(f"  Duration: {format_duration(run.resources.wall_time)}\n")
        output.write(f"  Samples:  {run.sample_count}\n")

        output.write("\n  [Resources]\n")
        output.write(f"  {HEADING_UNDERLINE}\n")
        output.write(f"  CPU:      {run.resources.cpu_utilization:.1f} %\n")
        output.write(f"  Memory:   {run.resources.memory_avg_percent:.1f} % avg, ")
        output.write(f"{run.resources.memory_peak_mb:.0f} MB peak\n")

        energy = run.energy
        output.write("\n  [Energy]\n")
        output.write(f"  {HEADING_UNDERLINE}\n")
        output.write(f"  CPU:      {energy.cpu_kwh:.8f} kWh\n")
        output.write(f"  GPU:      {energy.gpu_kwh:.8f} kWh\n")
        output.write(f"  Memory:   {energy.memory_kwh:.8f} kWh\n")
        output.write(f"  Disk:     {energy.disk_kwh:.8f} kWh\n")
        output.write(f"  Network:  {energy.network_kwh:.8f} kWh\n")
        energy_mwh = energy.total_kwh * 1_000_000
        output.write(f"  Total:    {energy_mwh:.1f} mWh ({energy.total_kwh:.8f} kWh)\n")

        carbon = run.carbon
        output.write("\n  [Impact]\n")
        output.write(f"  {HEADING_UNDERLINE}\n")
        output.write(f"  Region:   {carbon.region} ({carbon.intensity:g} gCO2/kWh)\n")
        output.write(f"  PUE:      {carbon.pue:.2f}\n")
        output.write(f"  CO2:      {carbon.total_grams:.4f} g ({run.impact.value})\n")
        output.write(f"  ~ {humanize(carbon.total_grams)}\n")

        verdict = self.thresholds.get(run.id)
        if verdict is not None:
            output.write("\n  [Budget]\n")
            output.write(f"  {HEADING_UNDERLINE}\n")
            output.write(f"  Status:   {verdict.status.value}\n")
            for reason in verdict.reasons:
                output.write(f"  - {reason}\n")

    def _format_history_text(self, output: StringIO) -> None:
        output.write(
            f"\n  {'Date':<12} {'Project':<16} {'Duration':<10} "
            f"{'mWh':>9} {'gCO2':>9} {'Impact':<8}\n"
        )
        output.write(f"  {HEADING_UNDERLINE * 3}\n")

        for run in self.runs:
            date = run.started_at.strftime("%Y-%m-%d")
            project = run.project[:15]
            duration = format_duration(run.resources.wall_time)
            energy_mwh = run.energy.total_kwh * 1_000_000
            output.write(
                f"  {date:<12} {project:<16} {duration:<10} "
                f"{energy_mwh:>9.1f} {run.carbon.total_grams:>9.4f} "
                f"{run.impact.value:<8}\n"
            )

        output.write(f"\n  Showing {len(self.runs)} run(s)\n")

    def _format_summary_text(self, output: StringIO, summary: StatsSummary) -> None:
        output.write("\n  [Summary]\n")
        output.write(f"  {HEADING_UNDERLINE}\n")
        output.write(f"  Runs:     {summary.total_runs}\n")
        output.write(f"  CO2:      {summary.total_carbon:.4f} g total, ")
        output.write(f"{summary.avg_carbon:.4f} g avg\n")
        output.write(f"  Energy:   {summary.total_energy:.8f} kWh\n")
        output.write(f"  Trend:    {summary.trend:+.1f} %\n")

    def _write_output(self, output: str | Path | TextIO, content: str) -> None:
        """Write content to file or stream.

        Args:
            output: File path or file-like object.
            content: String content to write.
        """
        if isinstance(output, str | Path):
            Path(output).write_text(content)
        else:
            output.write(content)
            if output is not sys.stdout and output is not sys.stderr:
                output.flush()

    def __len__(self) -> int:
        """Return number of runs."""
        return len(self.runs)
