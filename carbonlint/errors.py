"""Exception types raised by carbonlint."""

from __future__ import annotations


class CarbonLintError(Exception):
    """Base class for carbonlint errors."""


class AlreadyActiveError(CarbonLintError):
    """Raised when starting a session while another one is active."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Profiling session already in progress: {session_id}")


class NotActiveError(CarbonLintError):
    """Raised when stopping while no session is active."""

    def __init__(self) -> None:
        super().__init__("No profiling session in progress")


class RunNotFoundError(CarbonLintError):
    """Raised when a run id is not present in history."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(f"Run not found: {run_id}")


class MetricsUnavailableError(CarbonLintError):
    """Raised by a metrics provider when the host cannot be queried.

    The sampler catches this and degrades to zeroed stats; it never
    reaches callers of the session API.
    """
