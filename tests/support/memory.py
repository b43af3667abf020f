"""In-memory fakes of the persistence ports with transactional semantics."""

from __future__ import annotations

import copy
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from feedimport.domain.errors import StoreError
from feedimport.domain.model import Entity, initial_field_values
from feedimport.domain.ports.unit_of_work import FeedRepositories

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping, Sequence
    from datetime import datetime
    from types import TracebackType
    from uuid import UUID

    from feedimport.domain.model import (
        EntityOperation,
        ItemMetadata,
        Scalar,
        ScheduleState,
        SourceState,
    )
    from feedimport.domain.ports import FeedUnitOfWork


@dataclass
class MemoryTables:
    entities: dict[UUID, Entity] = field(default_factory=dict)
    items: dict[UUID, ItemMetadata] = field(default_factory=dict)
    sources: dict[str, SourceState] = field(default_factory=dict)
    schedules: dict[str, ScheduleState] = field(default_factory=dict)

    def copy(self) -> MemoryTables:
        return copy.deepcopy(self)

    def restore(self, other: MemoryTables) -> None:
        for name in ("entities", "items", "sources", "schedules"):
            table = getattr(self, name)
            table.clear()
            table.update(copy.deepcopy(getattr(other, name)))


@dataclass
class MemoryDatabase:
    """Committed state shared by every unit of work of one test."""

    tables: MemoryTables = field(default_factory=MemoryTables)
    commits: int = 0
    entity_writes: int = 0
    fail_save: Callable[[Entity], bool] | None = None
    validator: Callable[[Entity], list[str]] | None = None
    authorizer: Callable[[Entity, EntityOperation], bool] | None = None

    def unit_of_work_factory(self, entity_type: str = "item") -> Callable[[], FeedUnitOfWork]:
        def factory() -> FeedUnitOfWork:
            return MemoryUnitOfWork(self, entity_type)

        return factory

    def entities_of(self, entity_type: str = "item") -> list[Entity]:
        return [
            entity for entity in self.tables.entities.values() if entity.entity_type == entity_type
        ]


class MemoryEntityStore:
    def __init__(self, database: MemoryDatabase, working: MemoryTables, entity_type: str) -> None:
        self.database = database
        self.working = working
        self._entity_type = entity_type

    @property
    def entity_type(self) -> str:
        return self._entity_type

    def create(self, values: Mapping[str, object], *, owner_id: str | None = None) -> Entity:
        return Entity(
            entity_type=self._entity_type,
            fields=initial_field_values(values),
            owner_id=owner_id,
        )

    def load(self, entity_id: UUID) -> Entity | None:
        entity = self.working.entities.get(entity_id)
        if entity is None or entity.entity_type != self._entity_type:
            return None
        return entity

    def find_by_value(self, field_name: str, column: str, value: Scalar) -> UUID | None:
        wanted = None if value is None else str(value)
        for entity in self.working.entities.values():
            if entity.entity_type != self._entity_type:
                continue
            for delta in entity.fields.get(field_name, []):
                stored = delta.get(column)
                if stored is not None and str(stored) == wanted:
                    return entity.id
        return None

    def save(self, entity: Entity) -> None:
        if self.database.fail_save is not None and self.database.fail_save(entity):
            raise StoreError(f"Could not save {entity.id}")
        self.working.entities[entity.id] = entity
        self.database.entity_writes += 1

    def discard(self, entity: Entity) -> None:
        committed = self.database.tables.entities.get(entity.id)
        if committed is None:
            self.working.entities.pop(entity.id, None)
            return
        entity.fields = copy.deepcopy(committed.fields)
        entity.owner_id = committed.owner_id

    def delete(self, entity_ids: Sequence[UUID]) -> int:
        deleted = 0
        for entity_id in entity_ids:
            if self.working.entities.pop(entity_id, None) is not None:
                deleted += 1
        return deleted

    def validate(self, entity: Entity) -> list[str]:
        if self.database.validator is None:
            return []
        return self.database.validator(entity)

    def authorize(self, entity: Entity, operation: EntityOperation) -> bool:
        if self.database.authorizer is None:
            return True
        return self.database.authorizer(entity, operation)


class MemoryItemMetadataRepository:
    def __init__(self, working: MemoryTables) -> None:
        self.working = working

    def get(self, entity_id: UUID) -> ItemMetadata | None:
        return self.working.items.get(entity_id)

    def save(self, item: ItemMetadata) -> None:
        self.working.items[item.entity_id] = item

    def _for_source(self, source_id: str, imported_before: datetime | None) -> list[ItemMetadata]:
        items = [
            item
            for item in self.working.items.values()
            if item.source_id == source_id
            and (imported_before is None or item.imported_at < imported_before)
        ]
        return sorted(items, key=lambda item: (item.imported_at, item.entity_id))

    def ids_for_source(
        self,
        source_id: str,
        *,
        limit: int,
        imported_before: datetime | None = None,
    ) -> list[UUID]:
        return [item.entity_id for item in self._for_source(source_id, imported_before)][:limit]

    def count_for_source(self, source_id: str, *, imported_before: datetime | None = None) -> int:
        return len(self._for_source(source_id, imported_before))

    def delete(self, entity_ids: Sequence[UUID]) -> int:
        return sum(
            1 for entity_id in entity_ids if self.working.items.pop(entity_id, None) is not None
        )

    def delete_for_source(self, source_id: str) -> int:
        ids = [item.entity_id for item in self._for_source(source_id, None)]
        return self.delete(ids)


class MemorySourceStateRepository:
    def __init__(self, working: MemoryTables) -> None:
        self.working = working

    def get(self, source_id: str) -> SourceState | None:
        return self.working.sources.get(source_id)

    def add(self, state: SourceState) -> None:
        self.working.sources[state.source_id] = state


class MemoryScheduleRepository:
    def __init__(self, working: MemoryTables) -> None:
        self.working = working

    def get(self, source_id: str) -> ScheduleState | None:
        return self.working.schedules.get(source_id)

    def add(self, state: ScheduleState) -> None:
        self.working.schedules[state.source_id] = state


class MemoryUnitOfWork:
    """Works on a private copy of the tables; ``commit`` publishes it."""

    def __init__(self, database: MemoryDatabase, entity_type: str = "item") -> None:
        self.database = database
        self.entity_type = entity_type
        self._working: MemoryTables | None = None
        self._repositories: FeedRepositories | None = None

    def __enter__(self) -> MemoryUnitOfWork:
        self._working = self.database.tables.copy()
        self._repositories = FeedRepositories(
            entities=MemoryEntityStore(self.database, self._working, self.entity_type),
            items=MemoryItemMetadataRepository(self._working),
            sources=MemorySourceStateRepository(self._working),
            schedules=MemoryScheduleRepository(self._working),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        self._working = None
        self._repositories = None
        return False

    @property
    def repositories(self) -> FeedRepositories:
        assert self._repositories is not None, "unit of work not entered"
        return self._repositories

    def commit(self) -> None:
        assert self._working is not None, "unit of work not entered"
        self.database.tables = self._working.copy()
        self.database.commits += 1

    def rollback(self) -> None:
        assert self._working is not None, "unit of work not entered"
        self._working.restore(self.database.tables)

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        assert self._working is not None, "unit of work not entered"
        snapshot = self._working.copy()
        try:
            yield
        except BaseException:
            self._working.restore(snapshot)
            raise
