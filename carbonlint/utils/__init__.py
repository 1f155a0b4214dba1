"""CarbonLint utilities - environment access and logging."""

from carbonlint.utils.env import EnvVarError, EnvVarTypeError, get_env
from carbonlint.utils.logger import Logger, LoggerNotConfiguredError, LogLevel

__all__ = [
    # Env
    "EnvVarError",
    "EnvVarTypeError",
    "get_env",
    # Logger
    "LogLevel",
    "Logger",
    "LoggerNotConfiguredError",
]
