"""Entities created and updated by imports."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, cast
from uuid import UUID, uuid4

from .mapping import DEFAULT_COLUMN
from .record import to_scalar

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from .record import Scalar

# one delta of a field: column name -> value
type FieldTuple = dict[str, Scalar]
type FieldValues = dict[str, list[FieldTuple]]


class EntityOperation(StrEnum):
    CREATE = "create"
    UPDATE = "update"


def initial_field_values(values: Mapping[str, object]) -> FieldValues:
    """Expand configured default values into per-field delta lists.

    Scalars become a single ``value`` delta, lists one delta per item and
    mappings are taken as an explicit column dictionary.
    """

    fields: FieldValues = {}
    for name, value in values.items():
        if value is None:
            continue
        if isinstance(value, list | tuple):
            items = cast("Sequence[object]", value)
            fields[name] = [{DEFAULT_COLUMN: to_scalar(item)} for item in items]
        elif isinstance(value, dict):
            columns = cast("Mapping[str, object]", value)
            fields[name] = [{str(column): to_scalar(item) for column, item in columns.items()}]
        else:
            fields[name] = [{DEFAULT_COLUMN: to_scalar(value)}]
    return fields


@dataclass(eq=False, kw_only=True)
class Entity:
    """Persisted target object; the store owns identity and persistence."""

    entity_type: str
    fields: FieldValues = field(default_factory=dict)
    owner_id: str | None = None
    id: UUID = field(default_factory=uuid4)

    def get(self, name: str) -> list[FieldTuple]:
        return [dict(delta) for delta in self.fields.get(name, [])]

    def first(self, name: str, column: str = DEFAULT_COLUMN) -> Scalar:
        deltas = self.fields.get(name)
        if not deltas:
            return None
        return deltas[0].get(column)

    def set(self, name: str, deltas: Sequence[Mapping[str, Scalar]]) -> None:
        # always reassign so attribute instrumentation notices the change
        updated = dict(self.fields)
        if deltas:
            updated[name] = [dict(delta) for delta in deltas]
        else:
            updated.pop(name, None)
        self.fields = updated

    def clear(self, name: str) -> None:
        if name in self.fields:
            self.set(name, ())

    def reset(self, fields: FieldValues) -> None:
        self.fields = {name: [dict(delta) for delta in deltas] for name, deltas in fields.items()}
