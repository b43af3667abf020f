"""Authorization policies used by entity stores."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from feedimport.domain.model import Entity, EntityOperation


@runtime_checkable
class AccessPolicy(Protocol):
    def allows(self, entity: Entity, operation: EntityOperation) -> bool: ...


@dataclass(frozen=True, slots=True)
class OwnerAccessPolicy:
    """Only listed owners may create or update entities; ownerless entities pass."""

    owners: frozenset[str]

    def allows(self, entity: Entity, operation: EntityOperation) -> bool:
        if entity.owner_id is None:
            return True
        _ = operation
        return entity.owner_id in self.owners
