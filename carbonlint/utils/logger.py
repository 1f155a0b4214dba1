"""Centralized logging for carbonlint.

Reports go to stdout, so log records go to stderr unless a stream is given.
The CLI configures logging on every invocation; library modules ask for a
child logger and stay silent until then.

Usage:
    from carbonlint.utils.logger import Logger

    Logger.configure(level="INFO")

    # Command code (raises if not configured)
    log = Logger.get("commands.run")
    log.info("Profiling: pytest -x")

    # Library code (never raises)
    log = Logger.module("carbon.session")
    log.debug("Discarding late sample")
"""

import logging
import sys
from enum import Enum
from typing import TextIO

_ROOT_NAME = "carbonlint"

logging.getLogger(_ROOT_NAME).addHandler(logging.NullHandler())


class LogLevel(Enum):
    """Log levels accepted by ``Logger.configure``."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @classmethod
    def parse(cls, level: "str | LogLevel") -> "LogLevel":
        """Accept a LogLevel or a case-insensitive level name.

        Raises:
            ValueError: If the name is not a known level.
        """
        if isinstance(level, LogLevel):
            return level
        return cls(level.upper())

    def to_logging_level(self) -> int:
        """Convert to the numeric level used by ``logging``."""
        level: int = getattr(logging, self.value)
        return level


class LoggerNotConfiguredError(Exception):
    """Raised by ``Logger.get`` before ``Logger.configure`` has run."""

    def __init__(self) -> None:
        super().__init__(
            "Logger not configured. Call Logger.configure() at application startup."
        )


def _formatter(timestamps: bool) -> logging.Formatter:
    fmt = "%(levelname)s [%(name)s] %(message)s"
    if timestamps:
        fmt = "%(asctime)s " + fmt
    return logging.Formatter(fmt)


class Logger:
    """Single handler on the ``carbonlint`` logger, shared by all children.

    Example:
        >>> Logger.configure(level="DEBUG")
        >>> Logger.get("commands.profile").debug("window: 10s")
    """

    _configured: bool = False

    @classmethod
    def configure(
        cls,
        level: str | LogLevel = LogLevel.WARNING,
        output: TextIO | None = None,
        timestamps: bool = True,
    ) -> None:
        """Install the handler, replacing any previous one.

        Args:
            level: Level name or LogLevel.
            output: Stream for log records; ``sys.stderr`` when None.
            timestamps: Prefix records with the time.

        Raises:
            ValueError: If ``level`` is not a known level name.
        """
        numeric = LogLevel.parse(level).to_logging_level()

        root = logging.getLogger(_ROOT_NAME)
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()

        handler = logging.StreamHandler(output if output is not None else sys.stderr)
        handler.setFormatter(_formatter(timestamps))
        handler.setLevel(numeric)

        root.setLevel(numeric)
        root.addHandler(handler)
        root.propagate = False
        cls._configured = True

    @classmethod
    def get(cls, name: str | None = None) -> logging.Logger:
        """Return a logger for command code.

        Raises:
            LoggerNotConfiguredError: If ``configure()`` has not run.
        """
        if not cls._configured:
            raise LoggerNotConfiguredError()
        return cls.module(name)

    @classmethod
    def module(cls, name: str | None = None) -> logging.Logger:
        """Return ``carbonlint.<name>`` whether or not logging is configured."""
        return logging.getLogger(f"{_ROOT_NAME}.{name}" if name else _ROOT_NAME)

    @classmethod
    def set_level(cls, level: str | LogLevel) -> None:
        """Change the level of the logger and its handler.

        Raises:
            LoggerNotConfiguredError: If ``configure()`` has not run.
        """
        if not cls._configured:
            raise LoggerNotConfiguredError()

        numeric = LogLevel.parse(level).to_logging_level()
        root = logging.getLogger(_ROOT_NAME)
        root.setLevel(numeric)
        for handler in root.handlers:
            handler.setLevel(numeric)

    @classmethod
    def is_configured(cls) -> bool:
        """Whether ``configure()`` has run."""
        return cls._configured
