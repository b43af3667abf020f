"""Translate flat records into structured entity field values."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from feedimport.domain.errors import MappingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from feedimport.domain.model import Entity, FieldMapping, FieldTuple, Record, Scalar
    from feedimport.domain.targets import TargetRegistry

log = getLogger(__name__)


def group_by_target(mappings: Sequence[FieldMapping]) -> dict[str, list[FieldMapping]]:
    """Group mappings by target, keeping first-appearance order of targets."""

    grouped: dict[str, list[FieldMapping]] = {}
    for mapping in mappings:
        grouped.setdefault(mapping.target, []).append(mapping)
    return grouped


def gather_columns(record: Record, mappings: Sequence[FieldMapping]) -> dict[str, list[Scalar]]:
    """Collect the record values of every mapped column of one target.

    Scalar values are appended, list values concatenated, so several mappings
    into the same column accumulate.
    """

    columns: dict[str, list[Scalar]] = {}
    for mapping in mappings:
        columns.setdefault(mapping.column, []).extend(record.values_of(mapping.source))
    return columns


def transpose(columns: Mapping[str, Sequence[Scalar]]) -> list[FieldTuple]:
    """Turn per-column value lists into positional tuples.

    Position ``i`` across all columns forms delta ``i``; columns shorter than
    the longest one contribute ``None`` at the missing positions.
    """

    size = max((len(values) for values in columns.values()), default=0)
    return [
        {
            column: values[index] if index < len(values) else None
            for column, values in columns.items()
        }
        for index in range(size)
    ]


def validate_mappings(mappings: Sequence[FieldMapping], targets: TargetRegistry) -> None:
    """Reject mapping lists that cannot be applied or resolved unambiguously."""

    if not mappings:
        raise MappingConfigurationError("At least one mapping is required")
    unique_paths: set[tuple[str, str]] = set()
    for mapping in mappings:
        if not mapping.source or not mapping.target or not mapping.column:
            raise MappingConfigurationError(f"Incomplete mapping: {mapping!r}")
        if not targets.resolve(mapping.target).accepts_column(mapping.column):
            raise MappingConfigurationError(
                f"Target {mapping.target!r} has no column {mapping.column!r}"
            )
        if not mapping.unique:
            continue
        key = (mapping.target, mapping.column)
        if key in unique_paths:
            raise MappingConfigurationError(
                f"Target {mapping.path!r} is marked unique by more than one mapping"
            )
        unique_paths.add(key)


class MappingEngine:
    """Apply a mapping list to an entity."""

    def __init__(self, mappings: Sequence[FieldMapping], targets: TargetRegistry) -> None:
        self.mappings = tuple(mappings)
        self.targets = targets
        self._grouped = group_by_target(self.mappings)

    def map(self, record: Record, entity: Entity) -> Entity:
        handlers = {target: self.targets.resolve(target) for target in self._grouped}
        # mapped targets are replaced, never appended to
        for handler in handlers.values():
            handler.clear(entity)
        for target, mappings in self._grouped.items():
            deltas = transpose(gather_columns(record, mappings))
            log.debug("Setting %d value(s) on target %s", len(deltas), target)
            handlers[target].set_value(entity, deltas)
        return entity
