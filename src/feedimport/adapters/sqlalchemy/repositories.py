"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import SQLAlchemyError

from feedimport.adapters.sqlalchemy.mappings import (
    entity_field_value_table,
    entity_table,
    feeds_item_table,
)
from feedimport.domain.errors import StoreError
from feedimport.domain.model import (
    Entity,
    ItemMetadata,
    ScheduleState,
    SourceState,
    initial_field_values,
)
from feedimport.domain.ports.persistence import (
    EntityStore,
    ItemMetadataRepository,
    ScheduleRepository,
    SourceStateRepository,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy.orm import Session

    from feedimport.domain.model import EntityOperation, Scalar
    from feedimport.domain.reconciliation import AccessPolicy


def _index_value(value: Scalar) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def _index_rows(entity: Entity) -> Iterator[dict[str, object]]:
    for field_name, deltas in entity.fields.items():
        for delta, columns in enumerate(deltas):
            for column, value in columns.items():
                yield {
                    "entity_id": entity.id,
                    "entity_type": entity.entity_type,
                    "field": field_name,
                    "column_name": column,
                    "delta": delta,
                    "value": _index_value(value),
                }


class SqlAlchemyEntityStore:
    """Entity store for one entity type, with a value index for lookups."""

    def __init__(
        self,
        session: Session,
        entity_type: str,
        *,
        access_policy: AccessPolicy | None = None,
    ) -> None:
        self.session = session
        self._entity_type = entity_type
        self._access_policy = access_policy

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
        entity = self.session.get(Entity, entity_id)
        if entity is None or entity.entity_type != self._entity_type:
            return None
        return entity

    def find_by_value(self, field_name: str, column: str, value: Scalar) -> UUID | None:
        stmt = (
            select(entity_field_value_table.c.entity_id)
            .where(entity_field_value_table.c.entity_type == self._entity_type)
            .where(entity_field_value_table.c.field == field_name)
            .where(entity_field_value_table.c.column_name == column)
            .where(entity_field_value_table.c.value == _index_value(value))
            .order_by(entity_field_value_table.c.delta)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def save(self, entity: Entity) -> None:
        try:
            self.session.add(entity)
            self.session.flush()
            self.session.execute(
                delete(entity_field_value_table).where(
                    entity_field_value_table.c.entity_id == entity.id
                )
            )
            rows = list(_index_rows(entity))
            if rows:
                self.session.execute(insert(entity_field_value_table), rows)
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not save {self._entity_type} {entity.id}: {exc}") from exc

    def discard(self, entity: Entity) -> None:
        if entity in self.session:
            self.session.expire(entity)

    def delete(self, entity_ids: Sequence[UUID]) -> int:
        if not entity_ids:
            return 0
        ids = list(entity_ids)
        self.session.execute(
            delete(entity_field_value_table).where(entity_field_value_table.c.entity_id.in_(ids))
        )
        result = self.session.execute(
            delete(entity_table)
            .where(entity_table.c.id.in_(ids))
            .where(entity_table.c.entity_type == self._entity_type)
        )
        return result.rowcount

    def validate(self, entity: Entity) -> list[str]:
        violations: list[str] = []
        if entity.entity_type != self._entity_type:
            violations.append(
                f"entity type {entity.entity_type!r} does not belong to {self._entity_type!r}"
            )
        try:
            json.dumps(entity.fields)
        except (TypeError, ValueError) as exc:
            violations.append(f"field values cannot be stored: {exc}")
        return violations

    def authorize(self, entity: Entity, operation: EntityOperation) -> bool:
        if self._access_policy is None:
            return True
        return self._access_policy.allows(entity, operation)


class SqlAlchemyItemMetadataRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, entity_id: UUID) -> ItemMetadata | None:
        return self.session.get(ItemMetadata, entity_id)

    def save(self, item: ItemMetadata) -> None:
        self.session.merge(item)

    def ids_for_source(
        self,
        source_id: str,
        *,
        limit: int,
        imported_before: datetime | None = None,
    ) -> list[UUID]:
        stmt = (
            select(feeds_item_table.c.entity_id)
            .where(feeds_item_table.c.source_id == source_id)
            .order_by(feeds_item_table.c.imported_at, feeds_item_table.c.entity_id)
            .limit(limit)
        )
        if imported_before is not None:
            stmt = stmt.where(feeds_item_table.c.imported_at < imported_before)
        return list(self.session.execute(stmt).scalars())

    def count_for_source(self, source_id: str, *, imported_before: datetime | None = None) -> int:
        stmt = (
            select(func.count())
            .select_from(feeds_item_table)
            .where(feeds_item_table.c.source_id == source_id)
        )
        if imported_before is not None:
            stmt = stmt.where(feeds_item_table.c.imported_at < imported_before)
        return int(self.session.execute(stmt).scalar_one())

    def delete(self, entity_ids: Sequence[UUID]) -> int:
        if not entity_ids:
            return 0
        result = self.session.execute(
            delete(feeds_item_table).where(feeds_item_table.c.entity_id.in_(list(entity_ids)))
        )
        return result.rowcount

    def delete_for_source(self, source_id: str) -> int:
        result = self.session.execute(
            delete(feeds_item_table).where(feeds_item_table.c.source_id == source_id)
        )
        return result.rowcount


class SqlAlchemySourceStateRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, source_id: str) -> SourceState | None:
        return self.session.get(SourceState, source_id)

    def add(self, state: SourceState) -> None:
        self.session.add(state)


class SqlAlchemyScheduleRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, source_id: str) -> ScheduleState | None:
        return self.session.get(ScheduleState, source_id)

    def add(self, state: ScheduleState) -> None:
        self.session.add(state)


if TYPE_CHECKING:
    _entity_check: EntityStore = SqlAlchemyEntityStore(session=..., entity_type="item")  # type: ignore[arg-type]
    _items_check: ItemMetadataRepository = SqlAlchemyItemMetadataRepository(session=...)  # type: ignore[arg-type]
    _sources_check: SourceStateRepository = SqlAlchemySourceStateRepository(session=...)  # type: ignore[arg-type]
    _schedules_check: ScheduleRepository = SqlAlchemyScheduleRepository(session=...)  # type: ignore[arg-type]
