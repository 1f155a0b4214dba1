#!/usr/bin/env python3
"""CarbonLint CLI - Command-line interface for CarbonLint."""

import functools
import sys

import click

from carbonlint import config
from carbonlint.errors import CarbonLintError
from carbonlint.utils.env import EnvVarError
from carbonlint.utils.logger import Logger


def _handle_errors(func):
    """Turn domain and input errors into click errors with exit code 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (CarbonLintError, EnvVarError, ValueError) as exc:
            raise click.ClickException(str(exc)) from exc

    return wrapper


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def carbonlint(verbose):
    """CarbonLint: estimate the energy and carbon footprint of workloads."""
    # Reconfigure on every invocation so the env level and --verbose apply.
    try:
        Logger.configure(
            level="DEBUG" if verbose else config.log_level(), timestamps=True
        )
    except ValueError as exc:
        raise click.ClickException(f"Invalid log level: {exc}") from exc


# ----------------------------------------------------------------------------
# Profiling
# ----------------------------------------------------------------------------

_metadata_options = [
    click.option("--project", "-p", default=None, help="Project name for the run"),
    click.option("--branch", "-b", default=None, help="VCS branch for the run"),
    click.option("--commit", "-c", default=None, help="VCS commit for the run"),
    click.option(
        "--output",
        "-o",
        type=click.Path(),
        default=None,
        help="Write the report to a file (.json or .yaml)",
    ),
    click.option(
        "--format",
        "fmt",
        type=click.Choice(["json", "yaml", "text"]),
        default=None,
        help="Report format (default: inferred from --output, else text)",
    ),
]


def _with_metadata_options(func):
    for option in reversed(_metadata_options):
        func = option(func)
    return func


@carbonlint.command(context_settings={"ignore_unknown_options": True})
@_with_metadata_options
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@_handle_errors
def run(project, branch, commit, output, fmt, command):
    r"""Run COMMAND and estimate its footprint.

    The exit code is the command's own, or 2 when the command succeeds but
    the run exceeds the carbon or energy limit and failing is enabled.

    \b
    Examples:
      carbonlint run -- pytest -x
      carbonlint run -p api -b feature/x -- make build
      carbonlint run -o report.json -- ./train.sh
    """
    from carbonlint.commands.run_cmd import run_command

    try:
        code = run_command(
            command,
            project=project,
            branch=branch,
            commit=commit,
            output=output,
            fmt=fmt,
        )
    except FileNotFoundError as exc:
        raise click.ClickException(f"Command not found: {command[0]}") from exc
    sys.exit(code)


@carbonlint.command()
@click.option(
    "--duration",
    "-d",
    type=click.FloatRange(min=0, min_open=True),
    default=10.0,
    show_default=True,
    help="Seconds to sample the host",
)
@_with_metadata_options
@_handle_errors
def profile(duration, project, branch, commit, output, fmt):
    """Sample the whole host for a fixed window and record a run."""
    from carbonlint.commands.run_cmd import run_profile

    code = run_profile(
        duration,
        project=project,
        branch=branch,
        commit=commit,
        output=output,
        fmt=fmt,
    )
    sys.exit(code)


@carbonlint.command()
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@_handle_errors
def stats(output_json):
    """Show current host CPU and memory utilization."""
    from carbonlint.commands.history_cmd import show_host_stats

    show_host_stats(output_json)


# ----------------------------------------------------------------------------
# History
# ----------------------------------------------------------------------------


@carbonlint.command()
@click.option("--project", "-p", default=None, help="Only runs of this project")
@click.option(
    "--since",
    type=click.DateTime(),
    default=None,
    help="Only runs started at or after this time (UTC)",
)
@click.option(
    "--until",
    type=click.DateTime(),
    default=None,
    help="Only runs started at or before this time (UTC)",
)
@click.option(
    "--limit",
    "-n",
    type=click.IntRange(min=0),
    default=20,
    show_default=True,
    help="Maximum number of runs (0 for all)",
)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@_handle_errors
def history(project, since, until, limit, output_json):
    """List recorded runs, newest first."""
    from carbonlint.commands.history_cmd import show_history

    show_history(project, since, until, limit, output_json)


@carbonlint.command()
@click.argument("run_id")
@click.option(
    "--output", "-o", type=click.Path(), default=None, help="Write to a file"
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["json", "yaml", "text"]),
    default=None,
    help="Report format",
)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@_handle_errors
def show(run_id, output, fmt, output_json):
    """Show one run in detail."""
    from carbonlint.commands.history_cmd import show_run

    show_run(run_id, output, fmt, output_json)


@carbonlint.command()
@click.argument("run_id")
@_handle_errors
def delete(run_id):
    """Delete a run from history."""
    from carbonlint.commands.history_cmd import delete_run

    delete_run(run_id)


@carbonlint.command()
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@_handle_errors
def summary(output_json):
    """Show totals, trend and budget usage across history."""
    from carbonlint.commands.history_cmd import show_summary

    show_summary(output_json)


@carbonlint.command()
@click.argument("base_id")
@click.argument("head_id")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@_handle_errors
def compare(base_id, head_id, output_json):
    """Compare run HEAD_ID against run BASE_ID."""
    from carbonlint.commands.history_cmd import show_comparison

    show_comparison(base_id, head_id, output_json)


@carbonlint.command()
@click.argument("run_id", required=False)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@_handle_errors
def check(run_id, output_json):
    """Check a run (default: latest) against the carbon budget.

    Exits with 2 when the run fails and failing is enabled.
    """
    from carbonlint.commands.history_cmd import run_check

    sys.exit(run_check(run_id, output_json))


@carbonlint.command()
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@_handle_errors
def suggest(output_json):
    """Suggest optimizations based on recent runs."""
    from carbonlint.commands.history_cmd import show_suggestions

    show_suggestions(output_json)


# ----------------------------------------------------------------------------
# Settings and reference data
# ----------------------------------------------------------------------------


@carbonlint.command()
@click.option(
    "--set",
    "overrides",
    multiple=True,
    help="Change a setting (KEY=VALUE format, repeatable)",
)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@_handle_errors
def settings(overrides, output_json):
    r"""Show or change settings.

    \b
    Keys: region, pue, hardwareProfile, maxCarbon, maxEnergy,
          failOnThreshold, suggestionsEnabled

    \b
    Examples:
      carbonlint settings
      carbonlint settings --set region=EU-NORTH --set pue=1.2
    """
    from carbonlint.commands.settings_cmd import show_settings

    show_settings(overrides, output_json)


@carbonlint.command()
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def regions(output_json):
    """List grid regions and their carbon intensity."""
    from carbonlint.commands.settings_cmd import show_regions

    show_regions(output_json)


@carbonlint.command()
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def hardware(output_json):
    """List hardware power profiles."""
    from carbonlint.commands.settings_cmd import show_hardware

    show_hardware(output_json)


@carbonlint.command()
@click.option("--verbose", "-v", is_flag=True, help="Show detailed version information")
def version(verbose):
    """Display carbonlint version information."""
    from carbonlint.commands.version_cmd import run_version

    run_version(verbose=verbose)


if __name__ == "__main__":
    carbonlint()
