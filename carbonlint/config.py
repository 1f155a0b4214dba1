"""Process-level configuration read from the environment.

User-facing settings (region, PUE, thresholds) live in the settings store;
this module only covers where data goes and how the process behaves.
"""

from __future__ import annotations

from pathlib import Path

from carbonlint.utils.env import get_env

DEFAULT_HOME = Path.home() / ".carbonlint"
DEFAULT_SAMPLE_INTERVAL = 1.0
DEFAULT_LOG_LEVEL = "WARNING"


def data_dir() -> Path:
    """Return the directory holding ``runs.json`` and ``settings.json``."""
    home = get_env("CARBONLINT_HOME", log=True)
    return Path(home).expanduser() if home else DEFAULT_HOME


def sample_interval() -> float:
    """Return the sampling interval in seconds.

    Raises
    ------
    ValueError
        If the configured interval is not positive.
    """
    interval = get_env(
        "CARBONLINT_SAMPLE_INTERVAL",
        default=DEFAULT_SAMPLE_INTERVAL,
        as_type=float,
        log=True,
    )
    if interval <= 0:
        raise ValueError("CARBONLINT_SAMPLE_INTERVAL must be greater than zero")
    return interval


def log_level() -> str:
    """Return the configured log level name."""
    return get_env("CARBONLINT_LOG_LEVEL", default=DEFAULT_LOG_LEVEL).upper()
