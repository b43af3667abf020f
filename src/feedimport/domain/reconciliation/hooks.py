"""Ordered entity hooks consulted by the reconciliation engine.

Hooks are configured explicitly; the engine iterates them in order and merges
what they return.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from feedimport.domain.model import Entity


@runtime_checkable
class EntityHook(Protocol):
    def new_entity_values(self, entity_type: str) -> Mapping[str, object]: ...

    def validate(self, entity: Entity) -> list[str]: ...


@dataclass(frozen=True, slots=True)
class DefaultValues:
    """Initial field values of newly created entities."""

    values: Mapping[str, object] = field(default_factory=dict)

    def new_entity_values(self, entity_type: str) -> Mapping[str, object]:
        _ = entity_type
        return self.values

    def validate(self, entity: Entity) -> list[str]:
        _ = entity
        return []


@dataclass(frozen=True, slots=True)
class RequiredFields:
    """Reject entities lacking a non-empty value in any of ``fields``."""

    fields: tuple[str, ...] = ()

    def new_entity_values(self, entity_type: str) -> Mapping[str, object]:
        _ = entity_type
        return {}

    def validate(self, entity: Entity) -> list[str]:
        violations: list[str] = []
        for name in self.fields:
            deltas = entity.get(name)
            if not any(value not in (None, "") for delta in deltas for value in delta.values()):
                violations.append(f"{name}: this value should not be blank")
        return violations


def merged_new_entity_values(
    hooks: tuple[EntityHook, ...],
    entity_type: str,
) -> dict[str, object]:
    values: dict[str, object] = {}
    for hook in hooks:
        values.update(hook.new_entity_values(entity_type))
    return values
