"""Find the existing entity a record refers to."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from feedimport.domain.errors import LookupUnavailableError

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from uuid import UUID

    from feedimport.domain.model import FieldMapping, Record, Scalar
    from feedimport.domain.ports import EntityStore
    from feedimport.domain.targets import TargetRegistry

log = getLogger(__name__)


def _lookup_values(record: Record, source: str) -> Iterator[Scalar]:
    for value in record.values_of(source):
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        yield value


@dataclass(slots=True)
class UniqueKeyResolver:
    """Walk unique mappings in configured order; the first match wins."""

    mappings: Sequence[FieldMapping]
    targets: TargetRegistry
    store: EntityStore

    def resolve(self, record: Record) -> UUID | None:
        for mapping in self.mappings:
            if not mapping.unique:
                continue
            handler = self.targets.resolve(mapping.target)
            for value in _lookup_values(record, mapping.source):
                try:
                    entity_id = handler.find_by_value(self.store, mapping.column, value)
                except LookupUnavailableError as exc:
                    log.debug("Skipping unique target %s: %s", mapping.path, exc)
                    break
                if entity_id is not None:
                    return entity_id
        return None
