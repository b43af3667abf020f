"""Per-record reconciliation: decide create, update or skip and commit it.

Every record yields an explicit ``RecordResult``. Failures confined to one
record (validation, authorization, rejected values, store errors) come back as
``Err`` values so the chunk loop keeps going; anything else propagates.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from feedimport.domain.errors import StoreError, TargetValueError
from feedimport.domain.model import (
    EntityOperation,
    Err,
    ErrorKind,
    ItemMetadata,
    Ok,
    Outcome,
    initial_field_values,
)

from .contracts import ProcessorSettings, UpdatePolicy
from .hooks import EntityHook, merged_new_entity_values

if TYPE_CHECKING:
    from feedimport.domain.fingerprint import Fingerprinter
    from feedimport.domain.mapping import MappingEngine
    from feedimport.domain.model import Entity, Record, RecordResult
    from feedimport.domain.ports import FeedUnitOfWork
    from feedimport.domain.resolver import UniqueKeyResolver

log = getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class ReconciliationEngine:
    settings: ProcessorSettings
    mapper: MappingEngine
    resolver: UniqueKeyResolver
    fingerprinter: Fingerprinter
    unit_of_work: FeedUnitOfWork
    source_id: str
    hooks: tuple[EntityHook, ...] = ()
    clock: Callable[[], datetime] = utcnow

    def process(self, record: Record) -> RecordResult:
        repositories = self.unit_of_work.repositories
        try:
            existing_id = self.resolver.resolve(record)
        except TargetValueError as exc:
            return Err(kind=ErrorKind.VALUE, message=str(exc))
        if existing_id is not None and self.settings.update_policy is UpdatePolicy.SKIP:
            return Ok(outcome=Outcome.SKIPPED, entity_id=existing_id)

        fingerprint = self.fingerprinter(record)
        if existing_id is not None:
            item = repositories.items.get(existing_id)
            if (
                item is not None
                and item.fingerprint == fingerprint
                and not self.settings.force_update
            ):
                return Ok(outcome=Outcome.SKIPPED, entity_id=existing_id)

        if existing_id is None:
            operation = EntityOperation.CREATE
            entity = repositories.entities.create(
                self._new_entity_values(), owner_id=self.settings.owner_id
            )
        else:
            operation = EntityOperation.UPDATE
            loaded = repositories.entities.load(existing_id)
            if loaded is None:
                return Err(
                    kind=ErrorKind.STORE,
                    message=f"{self._label} {existing_id} could not be loaded",
                    entity_id=existing_id,
                )
            entity = loaded
            if self.settings.update_policy is UpdatePolicy.REPLACE:
                entity.reset(initial_field_values(self._new_entity_values()))

        result = self._map_and_check(record, entity, operation)
        if result is not None:
            if operation is EntityOperation.UPDATE:
                repositories.entities.discard(entity)
            return result

        try:
            with self.unit_of_work.savepoint():
                repositories.entities.save(entity)
                repositories.items.save(
                    ItemMetadata(
                        entity_id=entity.id,
                        source_id=self.source_id,
                        entity_type=self.settings.entity_type,
                        imported_at=self.clock(),
                        fingerprint=fingerprint,
                    )
                )
        except StoreError as exc:
            return Err(kind=ErrorKind.STORE, message=str(exc), entity_id=entity.id)

        if operation is EntityOperation.CREATE:
            return Ok(outcome=Outcome.CREATED, entity_id=entity.id)
        return Ok(outcome=Outcome.UPDATED, entity_id=entity.id)

    def _map_and_check(
        self,
        record: Record,
        entity: Entity,
        operation: EntityOperation,
    ) -> Err | None:
        try:
            self.mapper.map(record, entity)
        except TargetValueError as exc:
            return Err(kind=ErrorKind.VALUE, message=str(exc), entity_id=entity.id)

        store = self.unit_of_work.repositories.entities
        violations = list(store.validate(entity))
        for hook in self.hooks:
            violations.extend(hook.validate(entity))
        if violations:
            return Err(
                kind=ErrorKind.VALIDATION,
                message=(
                    f"The {self._label} {self._describe(entity)} failed to validate "
                    f"({'; '.join(violations)}). Please check your mappings."
                ),
                entity_id=entity.id,
            )

        if self.settings.authorize and not store.authorize(entity, operation):
            return Err(
                kind=ErrorKind.ACCESS,
                message=(
                    f"User {entity.owner_id} is not authorized to {operation.value} "
                    f"{self._label} {self._describe(entity)}"
                ),
                entity_id=entity.id,
            )
        return None

    def _new_entity_values(self) -> dict[str, object]:
        return merged_new_entity_values(self.hooks, self.settings.entity_type)

    @property
    def _label(self) -> str:
        return self.settings.entity_label

    @staticmethod
    def _describe(entity: Entity) -> str:
        title = entity.first("title")
        return repr(title) if title else str(entity.id)
