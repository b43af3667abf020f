"""Errors raised while reading settings and importer definitions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


class ConfigurationError(RuntimeError):
    """An importer definition or environment setting cannot be used."""


class MissingConfigurationError(ConfigurationError):
    """A required setting is absent or blank."""


class InvalidDefinitionError(ConfigurationError):
    """An importer definition failed validation.

    ``problems`` holds one ``"location: message"`` line per rejected value so
    the CLI can point at the offending TOML keys.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        problems: Sequence[str] = (),
    ) -> None:
        super().__init__(message)
        self.path = path
        self.problems = tuple(problems)
