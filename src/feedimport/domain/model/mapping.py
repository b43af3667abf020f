"""Declarative mapping rules from record fields to entity targets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

DEFAULT_COLUMN: Final[str] = "value"
PATH_SEPARATOR: Final[str] = ":"


@dataclass(frozen=True, slots=True)
class FieldMapping:
    """Route one record field onto one column of an entity target.

    Several mappings may share a target; they are grouped by the mapping engine
    and their columns are aligned positionally.
    """

    source: str
    target: str
    column: str = DEFAULT_COLUMN
    unique: bool = False

    @classmethod
    def from_path(cls, source: str, path: str, *, unique: bool = False) -> FieldMapping:
        """Build a mapping from a ``target`` or ``target:column`` path."""

        target, _, column = path.partition(PATH_SEPARATOR)
        return cls(source=source, target=target, column=column or DEFAULT_COLUMN, unique=unique)

    @property
    def path(self) -> str:
        if self.column == DEFAULT_COLUMN:
            return self.target
        return f"{self.target}{PATH_SEPARATOR}{self.column}"

    def as_config(self) -> dict[str, object]:
        return {
            "source": self.source,
            "target": self.target,
            "column": self.column,
            "unique": self.unique,
        }
