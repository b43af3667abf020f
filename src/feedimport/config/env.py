"""Environment variables understood by feedimport."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Final

from .errors import MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterable

CONFIG_ENV_VAR: Final[str] = "FEEDIMPORT_CONFIG"
DATA_DIR_ENV_VAR: Final[str] = "FEEDIMPORT_DATA_DIR"
DATABASE_URI_ENV_VAR: Final[str] = "DATABASE_URI"


def optional_env_var(name: str) -> str | None:
    """Return the stripped value of ``name``; blank values count as unset."""

    value = os.getenv(name)
    if value is None:
        return None
    return value.strip() or None


def require_env_vars(names: Iterable[str]) -> dict[str, str]:
    """Return every named variable, or raise listing all that are unset."""

    found = {name: optional_env_var(name) for name in names}
    missing = sorted(name for name, value in found.items() if value is None)
    if missing:
        raise MissingConfigurationError(f"Missing configuration for: {', '.join(missing)}")
    return {name: value for name, value in found.items() if value is not None}


def require_env_var(name: str) -> str:
    return require_env_vars((name,))[name]
