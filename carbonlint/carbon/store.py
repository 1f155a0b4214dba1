"""JSON file-based storage for run history and settings.

Layout under the data directory (``~/.carbonlint`` by default)::

    ~/.carbonlint/
    ├── runs.json       # newest-first list of runs, at most MAX_RUNS
    └── settings.json   # single current settings record

Every write rewrites the whole file. There is no locking: two processes
writing at once can lose each other's changes.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from carbonlint import config
from carbonlint.errors import RunNotFoundError
from carbonlint.models.carbon_models import Run, Settings, StatsSummary, parse_timestamp
from carbonlint.utils.logger import Logger

MAX_RUNS = 100
TREND_WINDOW = 10

_log = Logger.module("carbon.store")


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


class RunStore:
    """Bounded, newest-first history of completed runs.

    Parameters
    ----------
    base_dir : Path | None
        Directory holding ``runs.json``. Defaults to the configured data
        directory.
    max_runs : int
        Number of most recent runs kept; older ones are evicted on save.
    """

    def __init__(self, base_dir: Path | None = None, max_runs: int = MAX_RUNS) -> None:
        self._base_dir = base_dir or config.data_dir()
        self.max_runs = max_runs

    @property
    def path(self) -> Path:
        """Location of the history file."""
        return self._base_dir / "runs.json"

    def load_runs(self) -> list[Run]:
        """Read the full history, newest first.

        A missing, unreadable or corrupt file reads as an empty history.
        Individual records that fail validation are skipped.
        """
        if not self.path.exists():
            return []

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError, RecursionError) as exc:
            _log.warning(f"Ignoring unreadable history {self.path}: {exc}")
            return []

        if not isinstance(data, list):
            _log.warning(f"Ignoring history {self.path}: expected a list")
            return []

        runs: list[Run] = []
        for item in data:
            try:
                runs.append(Run.model_validate(item))
            except ValidationError as exc:
                _log.warning(f"Skipping invalid run record: {exc.error_count()} errors")
        return runs

    def _write_runs(self, runs: list[Run]) -> None:
        _write_json(self.path, [run.model_dump(mode="json") for run in runs])

    def save_run(self, run: Run) -> Run:
        """Prepend a run to history and evict anything past ``max_runs``.

        A run whose id is already in history replaces the older record.

        Returns
        -------
        Run
            The run that was saved, unchanged.
        """
        runs = [r for r in self.load_runs() if r.id != run.id]
        runs.insert(0, run)
        self._write_runs(runs[: self.max_runs])
        _log.debug(f"Saved run {run.id} ({min(len(runs), self.max_runs)} in history)")
        return run

    def get_run(self, run_id: str) -> Run | None:
        """Return the run with ``run_id``, or None if it is not in history."""
        for run in self.load_runs():
            if run.id == run_id:
                return run
        return None

    def require_run(self, run_id: str) -> Run:
        """Return the run with ``run_id``.

        Raises
        ------
        RunNotFoundError
            If the id is not in history.
        """
        run = self.get_run(run_id)
        if run is None:
            raise RunNotFoundError(run_id)
        return run

    def delete_run(self, run_id: str) -> bool:
        """Remove a run from history.

        Returns
        -------
        bool
            True if a run was removed.
        """
        runs = self.load_runs()
        remaining = [r for r in runs if r.id != run_id]
        if len(remaining) == len(runs):
            return False
        self._write_runs(remaining)
        _log.debug(f"Deleted run {run_id}")
        return True

    def get_runs(
        self,
        project: str | None = None,
        start: str | datetime | None = None,
        end: str | datetime | None = None,
        limit: int | None = None,
    ) -> list[Run]:
        """List runs matching every given filter, newest first.

        Parameters
        ----------
        project : str | None
            Only runs of this project.
        start, end : str | datetime | None
            Inclusive bounds on the run timestamp.
        limit : int | None
            Maximum number of runs returned, applied after filtering.
            Only a positive limit caps the result; None or 0 means no limit.
        """
        runs = self.load_runs()

        if project:
            runs = [r for r in runs if r.project == project]
        if start is not None:
            lower = parse_timestamp(start)
            runs = [r for r in runs if r.started_at >= lower]
        if end is not None:
            upper = parse_timestamp(end)
            runs = [r for r in runs if r.started_at <= upper]
        if limit is not None and limit > 0:
            runs = runs[:limit]

        return runs

    def get_stats_summary(self) -> StatsSummary:
        """Aggregate totals across history and the recent carbon trend.

        The trend compares the mean carbon of the ``TREND_WINDOW`` newest
        runs with the mean of the ``TREND_WINDOW`` runs before them. It is 0
        when there are no older runs or their mean is 0.
        """
        runs = self.load_runs()
        if not runs:
            return StatsSummary()

        total_carbon = sum(r.carbon.total_grams for r in runs)
        total_energy = sum(r.energy.total_kwh for r in runs)

        recent = runs[:TREND_WINDOW]
        older = runs[TREND_WINDOW : TREND_WINDOW * 2]
        trend = 0.0
        if older:
            recent_avg = sum(r.carbon.total_grams for r in recent) / len(recent)
            older_avg = sum(r.carbon.total_grams for r in older) / len(older)
            if older_avg > 0:
                trend = (recent_avg - older_avg) / older_avg * 100.0

        return StatsSummary(
            total_runs=len(runs),
            total_carbon=total_carbon,
            total_energy=total_energy,
            avg_carbon=total_carbon / len(runs),
            trend=trend,
        )


class SettingsStore:
    """Single current settings record, merged over defaults on every read.

    Parameters
    ----------
    base_dir : Path | None
        Directory holding ``settings.json``. Defaults to the configured
        data directory.
    """

    def __init__(self, base_dir: Path | None = None) -> None:
        self._base_dir = base_dir or config.data_dir()

    @property
    def path(self) -> Path:
        """Location of the settings file."""
        return self._base_dir / "settings.json"

    def _read_stored(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError, RecursionError) as exc:
            _log.warning(f"Ignoring unreadable settings {self.path}: {exc}")
            return {}
        if not isinstance(data, dict):
            _log.warning(f"Ignoring settings {self.path}: expected an object")
            return {}
        return data

    def load(self) -> Settings:
        """Return stored settings merged over defaults.

        Each stored field that fails validation falls back to its default;
        valid fields are kept.
        """
        stored = self._read_stored()
        try:
            return Settings.model_validate(stored)
        except ValidationError as exc:
            bad_keys = {str(err["loc"][0]) for err in exc.errors() if err["loc"]}
            _log.warning(f"Ignoring invalid settings: {', '.join(sorted(bad_keys))}")

        # Errors may name a field by alias or by name; drop both spellings.
        for name, info in Settings.model_fields.items():
            if name in bad_keys or info.alias in bad_keys:
                stored.pop(name, None)
                if info.alias:
                    stored.pop(info.alias, None)
        try:
            return Settings.model_validate(stored)
        except ValidationError:
            return Settings()

    def save(self, partial: Mapping[str, Any] | Settings) -> Settings:
        """Merge the given fields over defaults and persist the result.

        Fields not supplied are reset to their defaults, not kept from the
        previous record.

        Raises
        ------
        pydantic.ValidationError
            If a supplied value is invalid.
        """
        if isinstance(partial, Settings):
            settings = partial
        else:
            settings = Settings.model_validate(dict(partial))
        _write_json(self.path, settings.to_dict())
        return settings


def load_settings(base_dir: Path | None = None) -> Settings:
    """Return the current settings from ``base_dir`` merged over defaults."""
    return SettingsStore(base_dir).load()


def save_settings(
    partial: Mapping[str, Any] | Settings, base_dir: Path | None = None
) -> Settings:
    """Persist settings to ``base_dir``; see :meth:`SettingsStore.save`."""
    return SettingsStore(base_dir).save(partial)
