"""Ports for persisting entities and import bookkeeping."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from datetime import datetime
    from uuid import UUID

    from feedimport.domain.model import (
        Entity,
        EntityOperation,
        ItemMetadata,
        Scalar,
        ScheduleState,
        SourceState,
    )


@runtime_checkable
class EntityStore(Protocol):
    """Capability interface of the external entity store for one entity type."""

    @property
    def entity_type(self) -> str: ...

    def create(self, values: Mapping[str, object], *, owner_id: str | None = None) -> Entity: ...

    def load(self, entity_id: UUID) -> Entity | None: ...

    def find_by_value(self, field_name: str, column: str, value: Scalar) -> UUID | None: ...

    def save(self, entity: Entity) -> None:
        """Persist ``entity``; raise ``StoreError`` when it cannot be written."""
        ...

    def discard(self, entity: Entity) -> None:
        """Forget unsaved changes made to a loaded entity."""
        ...

    def delete(self, entity_ids: Sequence[UUID]) -> int: ...

    def validate(self, entity: Entity) -> list[str]: ...

    def authorize(self, entity: Entity, operation: EntityOperation) -> bool: ...


@runtime_checkable
class ItemMetadataRepository(Protocol):
    def get(self, entity_id: UUID) -> ItemMetadata | None: ...

    def save(self, item: ItemMetadata) -> None: ...

    def ids_for_source(
        self,
        source_id: str,
        *,
        limit: int,
        imported_before: datetime | None = None,
    ) -> list[UUID]: ...

    def count_for_source(self, source_id: str, *, imported_before: datetime | None = None) -> int: ...

    def delete(self, entity_ids: Sequence[UUID]) -> int: ...

    def delete_for_source(self, source_id: str) -> int: ...


@runtime_checkable
class SourceStateRepository(Protocol):
    def get(self, source_id: str) -> SourceState | None: ...

    def add(self, state: SourceState) -> None: ...


@runtime_checkable
class ScheduleRepository(Protocol):
    def get(self, source_id: str) -> ScheduleState | None: ...

    def add(self, state: ScheduleState) -> None: ...
