"""Typed access to ``CARBONLINT_*`` environment variables.

Usage:
    from carbonlint.utils.env import get_env

    interval = get_env("CARBONLINT_SAMPLE_INTERVAL", default=1.0, as_type=float)
    home = get_env("CARBONLINT_HOME")
"""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any

from carbonlint.utils.logger import Logger

_TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "off"})


class EnvVarError(Exception):
    """Base exception for environment variable errors."""


class EnvVarTypeError(EnvVarError):
    """Raised when a variable's value does not parse as the requested type."""

    def __init__(self, name: str, value: str, expected_type: type) -> None:
        self.name = name
        self.value = value
        self.expected_type = expected_type
        super().__init__(f"Cannot convert {name}='{value}' to {expected_type.__name__}")


def _parse_bool(value: str) -> bool:
    word = value.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(f"not a boolean: {value!r}")


_CONVERTERS: dict[type, Callable[[str], Any]] = {
    bool: _parse_bool,
    int: int,
    float: float,
    str: str,
}


def get_env(
    name: str,
    *,
    default: Any = None,
    as_type: type | None = None,
    log: bool = False,
) -> Any:
    """Read an environment variable, optionally converting it.

    An unset or empty variable yields ``default`` unconverted.

    Args:
        name: Variable name.
        default: Value returned when the variable is unset or empty.
        as_type: ``bool``, ``int``, ``float``, ``str`` or any callable type.
            Booleans accept 1/0, true/false, yes/no and on/off.
        log: Log the lookup at DEBUG level.

    Raises:
        EnvVarTypeError: If the value does not convert to ``as_type``.
    """
    value = os.environ.get(name)
    if log:
        Logger.module("env").debug(f"ENV GET {name}={value}")

    if not value:
        return default
    if as_type is None:
        return value

    convert = _CONVERTERS.get(as_type, as_type)
    try:
        return convert(value)
    except (ValueError, TypeError) as exc:
        raise EnvVarTypeError(name, value, as_type) from exc
