"""Immutable records produced by parsers."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from datetime import date, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import ItemsView

type Scalar = str | int | float | bool | None
type RecordValue = Scalar | tuple[Scalar, ...]


def to_scalar(value: object) -> Scalar:
    if value is None or isinstance(value, str | int | float | bool):
        return value
    if isinstance(value, datetime | date):
        return value.isoformat()
    return str(value)


def _freeze(value: object) -> RecordValue:
    if isinstance(value, list | tuple):
        return tuple(to_scalar(item) for item in value)
    return to_scalar(value)


class Record(Mapping[str, RecordValue]):
    """Ordered, read-only mapping from field name to a scalar or tuple of scalars.

    Field order is the order the parser produced the fields in and is part of
    the record's identity for fingerprinting.
    """

    __slots__ = ("_fields",)

    def __init__(
        self,
        fields: Mapping[str, object] | Iterable[tuple[str, object]] = (),
    ) -> None:
        pairs = fields.items() if isinstance(fields, Mapping) else fields
        self._fields: dict[str, RecordValue] = {str(name): _freeze(value) for name, value in pairs}

    def __getitem__(self, name: str) -> RecordValue:
        return self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"Record({self._fields!r})"

    def values_of(self, name: str) -> tuple[Scalar, ...]:
        """Return the value(s) for ``name`` as a tuple; missing fields yield ``(None,)``."""

        value = self._fields.get(name)
        if isinstance(value, tuple):
            return value
        return (value,)

    def pairs(self) -> ItemsView[str, RecordValue]:
        return self._fields.items()
